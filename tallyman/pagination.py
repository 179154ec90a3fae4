"""Page/limit pagination for tenant listings."""

from tallyman.exceptions import TallymanError
from tallyman.protocols.ledger import Page


def parse_page_params(page=None, limit=None) -> tuple[int, int]:
    """
    Normalize page/limit (ints or query-string values).

    Defaults: page 1, limit TALLYMAN["DEFAULT_PAGE_SIZE"]; limit is capped at
    TALLYMAN["MAX_PAGE_SIZE"].

    Raises:
        TallymanError: INVALID_ARGUMENT for non-numeric or non-positive values
    """
    from tallyman.conf import tallyman_settings

    try:
        page = int(page) if page not in (None, "") else 1
        limit = int(limit) if limit not in (None, "") else tallyman_settings.DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        raise TallymanError("INVALID_ARGUMENT", message="page and limit must be integers")

    if page < 1 or limit < 1:
        raise TallymanError("INVALID_ARGUMENT", message="page and limit must be positive")

    return page, min(limit, tallyman_settings.MAX_PAGE_SIZE)


def paginate(queryset, page=None, limit=None) -> Page:
    """Slice ``queryset`` into a Page with total and page count."""
    page, limit = parse_page_params(page, limit)
    total = queryset.count()
    offset = (page - 1) * limit
    return Page(
        items=list(queryset[offset:offset + limit]),
        total=total,
        page=page,
        limit=limit,
    )
