"""Tallyman models.

Record store partitioned by tenant:
- Tenant: unit of isolation
- Customer: per-tenant profile holding points_balance
- Reward: tenant catalog
- Visit / Transaction: immutable accrual facts and the points ledger
- Employee: tenant staff (status gate only)
"""

from tallyman.models.tenant import Tenant
from tallyman.models.customer import Customer, CustomerStatus
from tallyman.models.reward import Reward, RewardStatus
from tallyman.models.visit import Visit
from tallyman.models.transaction import Transaction, TransactionType
from tallyman.models.employee import Employee

__all__ = [
    "Tenant",
    "Customer",
    "CustomerStatus",
    "Reward",
    "RewardStatus",
    # Ledger
    "Visit",
    "Transaction",
    "TransactionType",
    "Employee",
]
