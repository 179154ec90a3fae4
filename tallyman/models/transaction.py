"""Transaction model - append-only points ledger."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class TransactionType(models.TextChoices):
    POINTS_EARNED = "POINTS_EARNED", _("Points earned")
    REWARD_REDEEMED = "REWARD_REDEEMED", _("Reward redeemed")


class Transaction(models.Model):
    """
    Immutable record of a balance change.

    One row per mutation of Customer.points_balance. Rows are never updated
    or deleted; the sum of ``points`` for a customer equals its balance.
    """

    tenant = models.ForeignKey(
        "tallyman.Tenant",
        on_delete=models.CASCADE,
        related_name="transactions",
        verbose_name=_("tenant"),
    )
    customer = models.ForeignKey(
        "tallyman.Customer",
        on_delete=models.CASCADE,
        related_name="transactions",
        verbose_name=_("customer"),
    )
    transaction_type = models.CharField(
        _("type"),
        max_length=20,
        choices=TransactionType.choices,
    )
    points = models.BigIntegerField(
        _("points"),
        help_text=_("Positive for accrual, negative for redemption"),
    )
    balance = models.BigIntegerField(
        _("balance"),
        help_text=_("Points balance after this transaction"),
    )

    # Rewards may be deleted by their owner; history rows survive unlinked
    reward = models.ForeignKey(
        "tallyman.Reward",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
        verbose_name=_("reward"),
    )
    visit = models.OneToOneField(
        "tallyman.Visit",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transaction",
        verbose_name=_("visit"),
    )

    description = models.CharField(_("description"), max_length=255)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        verbose_name = _("transaction")
        verbose_name_plural = _("transactions")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["tenant", "customer", "-created_at"], name="tallyman_tx_cust_created_idx"),
            models.Index(fields=["tenant", "transaction_type"], name="tallyman_tx_tenant_type_idx"),
        ]

    def __str__(self):
        sign = "+" if self.points > 0 else ""
        return f"{sign}{self.points}pts - {self.description}"
