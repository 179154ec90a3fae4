"""History service - append and query the points ledger."""

import logging

from django.db import transaction
from django.db.models import Count, IntegerField, Q, Sum, Value
from django.db.models.functions import Coalesce

from tallyman.exceptions import TallymanError
from tallyman.models import Customer, Reward, Transaction, TransactionType
from tallyman.protocols.ledger import AuditDiscrepancy, TransactionEntry

logger = logging.getLogger(__name__)


class HistoryService:
    """
    Service for the append-only transaction log.

    Uses @classmethod for extensibility (consistent with LedgerService).
    Rows are only created through append(), from inside the ledger's
    atomic blocks, and are never updated or deleted.
    """

    @classmethod
    def append(
        cls,
        customer: Customer,
        transaction_type: str,
        points: int,
        balance: int,
        description: str,
        reward: Reward | None = None,
        visit=None,
        created_by: str = "",
    ) -> Transaction:
        """
        Record one balance change.

        MUST be called inside transaction.atomic(), in the same block that
        wrote the balance.
        """
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("HistoryService.append() requires an atomic block")

        return Transaction.objects.create(
            tenant_id=customer.tenant_id,
            customer=customer,
            transaction_type=transaction_type,
            points=points,
            balance=balance,
            description=description,
            reward=reward,
            visit=visit,
            created_by=created_by,
        )

    @classmethod
    def list_transactions(
        cls,
        tenant_code: str,
        customer_code: str | None,
        transaction_type: str | None = None,
    ) -> list[TransactionEntry]:
        """
        Ledger entries of a customer, newest first.

        Entries referencing a reward carry its current name; a reward that
        no longer exists leaves the name blank.

        Args:
            tenant_code: Caller's tenant
            customer_code: Customer code (empty returns no entries)
            transaction_type: Optional filter (POINTS_EARNED, REWARD_REDEEMED)

        Raises:
            TallymanError: INVALID_ARGUMENT for an unknown type
        """
        if not customer_code:
            return []

        qs = Transaction.objects.filter(
            tenant__code=tenant_code,
            customer__code=customer_code,
        )
        if transaction_type:
            if transaction_type not in TransactionType.values:
                raise TallymanError(
                    "INVALID_ARGUMENT",
                    message=f"Unknown transaction type: {transaction_type}",
                    allowed=list(TransactionType.values),
                )
            qs = qs.filter(transaction_type=transaction_type)

        qs = qs.select_related("tenant", "customer", "reward").order_by("-created_at", "-id")
        return [cls._to_entry(tx) for tx in qs]

    @staticmethod
    def _to_entry(tx: Transaction) -> TransactionEntry:
        reward = tx.reward
        return TransactionEntry(
            id=tx.pk,
            tenant_code=tx.tenant.code,
            customer_code=tx.customer.code,
            transaction_type=tx.transaction_type,
            points=tx.points,
            balance=tx.balance,
            description=tx.description,
            created_at=tx.created_at,
            reward_code=reward.code if reward else None,
            reward_name=(reward.name or "") if reward else "",
            visit_id=tx.visit_id,
        )

    @classmethod
    def replay_balance(cls, tenant_code: str, customer_code: str) -> int:
        """Balance reconstructed from the ledger alone."""
        result = Transaction.objects.filter(
            tenant__code=tenant_code,
            customer__code=customer_code,
        ).aggregate(total=Sum("points"))
        return result["total"] or 0

    @classmethod
    def audit(cls, tenant_code: str | None = None) -> list[AuditDiscrepancy]:
        """
        Compare stored counters with the ledger.

        Checks every customer balance against the sum of its transactions,
        and every reward redemption_count against its REWARD_REDEEMED rows.
        """
        customers = Customer.objects.select_related("tenant")
        rewards = Reward.objects.select_related("tenant")
        if tenant_code:
            customers = customers.filter(tenant__code=tenant_code)
            rewards = rewards.filter(tenant__code=tenant_code)

        discrepancies = []

        customers = customers.annotate(
            ledger_total=Coalesce(Sum("transactions__points"), Value(0), output_field=IntegerField()),
        )
        for cust in customers:
            if cust.points_balance != cust.ledger_total:
                discrepancies.append(
                    AuditDiscrepancy(
                        kind="balance",
                        tenant_code=cust.tenant.code,
                        code=cust.code,
                        stored=cust.points_balance,
                        expected=cust.ledger_total,
                    )
                )

        rewards = rewards.annotate(
            ledger_count=Count(
                "transactions",
                filter=Q(transactions__transaction_type=TransactionType.REWARD_REDEEMED),
            ),
        )
        for reward in rewards:
            if reward.redemption_count != reward.ledger_count:
                discrepancies.append(
                    AuditDiscrepancy(
                        kind="redemption_count",
                        tenant_code=reward.tenant.code,
                        code=reward.code,
                        stored=reward.redemption_count,
                        expected=reward.ledger_count,
                    )
                )

        if discrepancies:
            logger.warning("Ledger audit found %d discrepancies", len(discrepancies))
        return discrepancies
