"""Identity protocols."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    BUSINESS_OWNER = "business_owner"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Identity:
    """Verified caller identity extracted from a bearer token."""

    tenant_code: str
    role: Role
    user_id: str | None = None
    username: str | None = None
    customer_code: str | None = None

    @property
    def actor(self) -> str:
        """Label stored in created_by audit fields."""
        return self.username or self.user_id or self.role.value
