"""Retry of balance writes on lock contention and serialization failures."""

import logging
import random
import time
from functools import wraps

from django.db import OperationalError

from tallyman.exceptions import TallymanError

logger = logging.getLogger(__name__)

# Database error codes that indicate a transient conflict
RETRY_ERROR_CODES = {
    # PostgreSQL
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
    # MySQL
    "1205",  # Lock wait timeout exceeded
    "1213",  # Deadlock found when trying to get lock
}

RETRY_MESSAGES = ("deadlock", "serializ", "could not obtain lock", "database is locked")


def is_retryable_error(error: Exception) -> bool:
    """True if ``error`` is a transient conflict worth retrying."""
    if not isinstance(error, OperationalError):
        return False

    cause = error.__cause__
    pgcode = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if pgcode:
        return pgcode in RETRY_ERROR_CODES

    args = getattr(cause, "args", None) or error.args
    if args and str(args[0]) in RETRY_ERROR_CODES:
        return True

    message = str(error).lower()
    return any(fragment in message for fragment in RETRY_MESSAGES)


def retry_on_conflict(func):
    """
    Re-run ``func`` when the database reports a transient conflict.

    ``func`` must open its own ``transaction.atomic()`` so each attempt
    starts from a clean state. Attempts and backoff come from
    TALLYMAN["CONFLICT_RETRIES"] / ["CONFLICT_RETRY_DELAY"]. When retries are
    exhausted the conflict surfaces as TallymanError("LEDGER_CONFLICT").
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        from tallyman.conf import tallyman_settings

        max_retries = max(0, tallyman_settings.CONFLICT_RETRIES)
        delay = tallyman_settings.CONFLICT_RETRY_DELAY

        for attempt in range(max_retries + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as exc:
                if not is_retryable_error(exc):
                    raise
                if attempt == max_retries:
                    logger.warning(
                        "%s: conflict persisted after %d attempts: %s",
                        func.__qualname__,
                        attempt + 1,
                        exc,
                    )
                    raise TallymanError("LEDGER_CONFLICT") from exc

                sleep_for = delay * (2 ** attempt) * (1 + random.random() * 0.25)
                logger.info(
                    "%s: conflict on attempt %d/%d, retrying in %.3fs",
                    func.__qualname__,
                    attempt + 1,
                    max_retries + 1,
                    sleep_for,
                )
                time.sleep(sleep_for)

    return wrapper
