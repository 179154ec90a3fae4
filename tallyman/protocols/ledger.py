"""Ledger result types."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RedemptionResult:
    """Outcome of a successful reward redemption."""

    remaining_points: int
    transaction_id: int
    reward_code: str
    customer_code: str


@dataclass(frozen=True)
class TransactionEntry:
    """Ledger entry as returned by history listings."""

    id: int
    tenant_code: str
    customer_code: str
    transaction_type: str
    points: int
    balance: int
    description: str
    created_at: datetime
    reward_code: str | None = None
    reward_name: str = ""
    visit_id: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenantId": self.tenant_code,
            "customerId": self.customer_code,
            "type": self.transaction_type,
            "points": self.points,
            "balance": self.balance,
            "description": self.description,
            "rewardId": self.reward_code,
            "rewardName": self.reward_name,
            "visitId": self.visit_id,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AuditDiscrepancy:
    """Stored counter that disagrees with the ledger."""

    kind: str  # "balance" | "redemption_count"
    tenant_code: str
    code: str
    stored: int
    expected: int


@dataclass(frozen=True)
class Page:
    """One page of a listing plus pagination metadata."""

    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0

    def pagination(self) -> dict[str, int]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "pages": self.pages,
        }
