"""
Tallyman configuration.

Usage in settings.py:
    TALLYMAN = {
        "JWT_SECRET": env("JWT_SECRET"),
        "MAX_PAGE_SIZE": 100,
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


@dataclass
class TallymanSettings:
    """Tallyman configuration settings."""

    # Bearer token verification (tokens are issued elsewhere)
    JWT_SECRET: str = ""
    JWT_ALGORITHMS: list[str] = field(default_factory=lambda: ["HS256"])

    # Listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Inactive rewards cannot be redeemed
    ENFORCE_REWARD_STATUS: bool = True

    # Lock/serialization failures on balance writes
    CONFLICT_RETRIES: int = 3
    CONFLICT_RETRY_DELAY: float = 0.05


def get_tallyman_settings() -> TallymanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "TALLYMAN", {})
    return TallymanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_tallyman_settings(), name)


tallyman_settings = _LazySettings()
