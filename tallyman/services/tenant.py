"""Tenant lookup."""

from tallyman.exceptions import TallymanError
from tallyman.models import Tenant


def get(code: str) -> Tenant | None:
    """Get active tenant by code."""
    try:
        return Tenant.objects.get(code=code, is_active=True)
    except Tenant.DoesNotExist:
        return None


def require(code: str) -> Tenant:
    """Get active tenant or raise TENANT_NOT_FOUND."""
    tenant = get(code)
    if not tenant:
        raise TallymanError("TENANT_NOT_FOUND", tenant_code=code)
    return tenant
