"""Reward model - a tenant's redemption catalog entry."""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


def generate_reward_code() -> str:
    return f"RWD-{uuid_lib.uuid4().hex[:8].upper()}"


class RewardStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    INACTIVE = "inactive", _("Inactive")


class Reward(models.Model):
    """
    Catalog reward owned by a single tenant.

    redemption_count is only ever incremented by LedgerService.redeem_reward(),
    in the same atomic block that writes the REWARD_REDEEMED transaction.
    """

    tenant = models.ForeignKey(
        "tallyman.Tenant",
        on_delete=models.CASCADE,
        related_name="rewards",
        verbose_name=_("tenant"),
    )
    code = models.CharField(
        _("code"),
        max_length=50,
        unique=True,
        default=generate_reward_code,
    )
    name = models.CharField(_("name"), max_length=200)
    description = models.TextField(_("description"))
    points_required = models.PositiveBigIntegerField(_("points required"))
    status = models.CharField(
        _("status"),
        max_length=10,
        choices=RewardStatus.choices,
        default=RewardStatus.ACTIVE,
        db_index=True,
    )
    redemption_count = models.PositiveIntegerField(_("redemptions"), default=0)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("reward")
        verbose_name_plural = _("rewards")
        ordering = ["points_required", "name"]
        indexes = [
            models.Index(fields=["tenant", "name"], name="tallyman_rwd_tenant_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.points_required}pts)"

    @property
    def is_active(self) -> bool:
        return self.status == RewardStatus.ACTIVE
