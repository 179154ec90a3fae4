"""Tallyman services.

Record store (module functions, tenant-scoped):
- tallyman.services.tenant
- tallyman.services.customer
- tallyman.services.reward
- tallyman.services.employee

Ledger (classmethod services):
- tallyman.services.ledger: LedgerService
- tallyman.services.history: HistoryService
"""

from tallyman.services import customer
from tallyman.services import employee
from tallyman.services import reward
from tallyman.services import tenant

__all__ = ["customer", "employee", "reward", "tenant"]
