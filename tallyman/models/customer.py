"""Customer model.

Data architecture:
    One Customer row per (tenant, person). The same email may be registered
    under several tenants; each registration is a distinct profile with its
    own points_balance. Uniqueness is enforced on (tenant, email).

    points_balance
        Current spendable points for this tenant. Written only by
        LedgerService, always inside transaction.atomic() together with the
        matching Transaction row. Never negative (DB check constraint).
"""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


def generate_customer_code() -> str:
    return f"CUST-{uuid_lib.uuid4().hex[:8].upper()}"


class CustomerStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    INACTIVE = "inactive", _("Inactive")


class Customer(models.Model):
    """Customer profile registered under a tenant."""

    tenant = models.ForeignKey(
        "tallyman.Tenant",
        on_delete=models.PROTECT,
        related_name="customers",
        verbose_name=_("tenant"),
    )
    code = models.CharField(
        _("code"),
        max_length=50,
        unique=True,
        default=generate_customer_code,
        help_text=_("Opaque public identifier (ex: CUST-1A2B3C4D)"),
    )

    first_name = models.CharField(_("first name"), max_length=50)
    last_name = models.CharField(_("last name"), max_length=50, blank=True)
    email = models.EmailField(_("email"))
    phone = models.CharField(_("phone"), max_length=30, blank=True)
    address = models.CharField(_("address"), max_length=255, blank=True)

    status = models.CharField(
        _("status"),
        max_length=10,
        choices=CustomerStatus.choices,
        default=CustomerStatus.ACTIVE,
        db_index=True,
    )
    points_balance = models.BigIntegerField(
        _("points balance"),
        default=0,
        help_text=_("Spendable points under this tenant"),
    )

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "email"],
                name="tallyman_customer_unique_tenant_email",
            ),
            models.CheckConstraint(
                condition=models.Q(points_balance__gte=0),
                name="tallyman_customer_points_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "phone"], name="tallyman_cust_tenant_phone_idx"),
            models.Index(fields=["tenant", "-points_balance"], name="tallyman_cust_tenant_pts_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def name(self) -> str:
        """Full name (first + last)."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == CustomerStatus.ACTIVE

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower().strip()
        super().save(*args, **kwargs)
