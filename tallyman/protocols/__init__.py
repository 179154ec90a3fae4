"""Tallyman protocols."""

from tallyman.protocols.identity import Identity, Role
from tallyman.protocols.ledger import (
    AuditDiscrepancy,
    Page,
    RedemptionResult,
    TransactionEntry,
)

__all__ = [
    # Identity
    "Identity",
    "Role",
    # Ledger
    "AuditDiscrepancy",
    "Page",
    "RedemptionResult",
    "TransactionEntry",
]
