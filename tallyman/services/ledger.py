"""Ledger service - visit accrual and reward redemption.

Every balance mutation runs in one transaction.atomic() block that also
writes its Visit and/or Transaction rows, so a failure at any step leaves
nothing behind. The customer row is locked with select_for_update() and the
decrement itself is guarded (``WHERE points_balance >= cost``), so two
concurrent redemptions can never spend the same points twice.
"""

import logging
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from tallyman.db import retry_on_conflict
from tallyman.exceptions import TallymanError
from tallyman.models import Customer, Reward, Tenant, TransactionType, Visit
from tallyman.protocols.ledger import RedemptionResult
from tallyman.services import customer as customer_service
from tallyman.services import tenant as tenant_service
from tallyman.services.history import HistoryService
from tallyman.signals import reward_redeemed, visit_recorded

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_MAX_AMOUNT = Decimal("9999999999.99")

# Largest points value accepted for one visit or one reward
MAX_POINTS = 9_999_999_999


def _parse_amount(amount) -> Decimal:
    """Validated amount, unrounded. Callers quantize to cents for storage."""
    if amount is None or amount == "" or isinstance(amount, bool):
        raise TallymanError("INVALID_ARGUMENT", message="Customer and amount are required")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise TallymanError("INVALID_ARGUMENT", message="Amount must be a number", field="amount")
    if not value.is_finite() or value < 0 or value >= _MAX_AMOUNT + _CENT / 2:
        raise TallymanError(
            "INVALID_ARGUMENT",
            message="Amount must be a non-negative number",
            field="amount",
        )
    return value


def _parse_points(points, amount: Decimal) -> int:
    if points is None or points == "":
        return int(amount.to_integral_value(rounding=ROUND_FLOOR))
    if isinstance(points, bool):
        raise TallymanError("INVALID_ARGUMENT", message="Points must be an integer", field="points")
    try:
        value = Decimal(str(points))
    except (InvalidOperation, ValueError):
        raise TallymanError("INVALID_ARGUMENT", message="Points must be an integer", field="points")
    if not value.is_finite() or value != value.to_integral_value() or value < 0:
        raise TallymanError(
            "INVALID_ARGUMENT",
            message="Points must be a non-negative integer",
            field="points",
        )
    if value > MAX_POINTS:
        raise TallymanError(
            "INVALID_ARGUMENT",
            message=f"Points must not exceed {MAX_POINTS}",
            field="points",
        )
    return int(value)


class LedgerService:
    """
    Service for points balance mutations.

    Uses @classmethod for extensibility (consistent with HistoryService).
    All balance writes use transaction.atomic() and are retried on lock
    conflicts by retry_on_conflict.
    """

    @classmethod
    @retry_on_conflict
    def record_visit(
        cls,
        tenant_code: str,
        customer_code: str,
        amount,
        points=None,
        notes: str = "",
        created_by: str = "",
    ) -> Visit:
        """
        Log a visit and accrue its points.

        Args:
            tenant_code: Caller's tenant
            customer_code: Customer code within the tenant
            amount: Amount spent (non-negative number)
            points: Points to award; defaults to floor(amount)
            notes: Free-text notes
            created_by: Who logged the visit

        Returns:
            Created Visit

        Raises:
            TallymanError: INVALID_ARGUMENT, TENANT_NOT_FOUND,
                CUSTOMER_NOT_FOUND, CUSTOMER_INACTIVE
        """
        if not customer_code:
            raise TallymanError("INVALID_ARGUMENT", message="Customer and amount are required")
        amount = _parse_amount(amount)
        points = _parse_points(points, amount)
        amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
        tenant = tenant_service.require(tenant_code)

        with transaction.atomic():
            customer = cls._get_active_customer_for_update(tenant, customer_code)

            visit = Visit.objects.create(
                tenant_id=customer.tenant_id,
                customer=customer,
                amount=amount,
                points=points,
                notes=notes or "",
                visit_date=timezone.now(),
                created_by=created_by,
            )

            Customer.objects.filter(pk=customer.pk).update(
                points_balance=F("points_balance") + points,
                updated_at=timezone.now(),
            )
            customer.refresh_from_db(fields=["points_balance"])

            HistoryService.append(
                customer,
                TransactionType.POINTS_EARNED,
                points=points,
                balance=customer.points_balance,
                description=f"Earned points from visit - ${amount:.2f} spent",
                visit=visit,
                created_by=created_by,
            )

            balance = customer.points_balance
            transaction.on_commit(
                lambda: visit_recorded.send(sender=Visit, visit=visit, balance=balance)
            )

        logger.info(
            "Visit %s: +%d pts for %s/%s (balance %d)",
            visit.pk,
            points,
            tenant_code,
            customer_code,
            balance,
        )
        return visit

    @classmethod
    @retry_on_conflict
    def redeem_reward(
        cls,
        tenant_code: str,
        customer_code: str,
        reward_code: str,
        created_by: str = "",
    ) -> RedemptionResult:
        """
        Exchange points for a reward of the caller's tenant.

        Decrements the balance by points_required, increments the reward's
        redemption_count and appends a REWARD_REDEEMED transaction, all in
        one atomic block.

        Args:
            tenant_code: Caller's tenant (the reward is looked up here only)
            customer_code: Customer code within the tenant
            reward_code: Reward code within the tenant
            created_by: Who performed the redemption

        Returns:
            RedemptionResult with the post-redemption balance

        Raises:
            TallymanError: INVALID_ARGUMENT, REWARD_NOT_FOUND, REWARD_INACTIVE,
                CUSTOMER_NOT_FOUND, CUSTOMER_INACTIVE, INSUFFICIENT_POINTS
        """
        from tallyman.conf import tallyman_settings

        if not customer_code or not reward_code:
            raise TallymanError("INVALID_ARGUMENT", message="Customer and reward are required")

        tenant = tenant_service.require(tenant_code)

        with transaction.atomic():
            try:
                reward = Reward.objects.get(tenant=tenant, code=reward_code)
            except Reward.DoesNotExist:
                raise TallymanError("REWARD_NOT_FOUND", reward_code=reward_code)

            if tallyman_settings.ENFORCE_REWARD_STATUS and not reward.is_active:
                raise TallymanError("REWARD_INACTIVE", reward_code=reward_code)

            customer = cls._get_active_customer_for_update(tenant, customer_code)
            cost = reward.points_required

            if customer.points_balance < cost:
                raise TallymanError(
                    "INSUFFICIENT_POINTS",
                    available=customer.points_balance,
                    requested=cost,
                )

            debited = Customer.objects.filter(
                pk=customer.pk,
                points_balance__gte=cost,
            ).update(
                points_balance=F("points_balance") - cost,
                updated_at=timezone.now(),
            )
            if not debited:
                # Balance changed between the locked read and the write
                customer.refresh_from_db(fields=["points_balance"])
                raise TallymanError(
                    "INSUFFICIENT_POINTS",
                    available=customer.points_balance,
                    requested=cost,
                )

            Reward.objects.filter(pk=reward.pk).update(
                redemption_count=F("redemption_count") + 1,
            )
            customer.refresh_from_db(fields=["points_balance"])

            tx = HistoryService.append(
                customer,
                TransactionType.REWARD_REDEEMED,
                points=-cost,
                balance=customer.points_balance,
                description=f"Redeemed reward: {reward.name}",
                reward=reward,
                created_by=created_by,
            )

            transaction.on_commit(
                lambda: reward_redeemed.send(
                    sender=Reward, reward=reward, customer=customer, transaction=tx
                )
            )

        logger.info(
            "Reward %s redeemed by %s/%s: -%d pts (balance %d)",
            reward_code,
            tenant_code,
            customer_code,
            cost,
            tx.balance,
        )
        return RedemptionResult(
            remaining_points=tx.balance,
            transaction_id=tx.pk,
            reward_code=reward.code,
            customer_code=customer.code,
        )

    @classmethod
    def get_balance(cls, tenant_code: str, customer_code: str) -> int:
        """Current points balance of a customer within a tenant."""
        return customer_service.require(tenant_code, customer_code).points_balance

    @classmethod
    def _get_active_customer_for_update(cls, tenant: Tenant, customer_code: str) -> Customer:
        """
        Get customer with row-level lock for mutation.

        MUST be called inside transaction.atomic().
        Prevents lost-update race conditions on concurrent accrual/redemption.
        """
        try:
            customer = (
                Customer.objects
                .select_for_update()
                .get(tenant=tenant, code=customer_code)
            )
        except Customer.DoesNotExist:
            raise TallymanError("CUSTOMER_NOT_FOUND", customer_code=customer_code)

        if not customer.is_active:
            raise TallymanError("CUSTOMER_INACTIVE", customer_code=customer_code)
        return customer
