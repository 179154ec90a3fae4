"""Visit model - purchase event that accrues points."""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Visit(models.Model):
    """
    Immutable record of a customer visit.

    Created exactly once per LedgerService.record_visit() call, together with
    the balance increment and the POINTS_EARNED transaction.
    """

    tenant = models.ForeignKey(
        "tallyman.Tenant",
        on_delete=models.CASCADE,
        related_name="visits",
        verbose_name=_("tenant"),
    )
    customer = models.ForeignKey(
        "tallyman.Customer",
        on_delete=models.CASCADE,
        related_name="visits",
        verbose_name=_("customer"),
    )
    amount = models.DecimalField(_("amount"), max_digits=12, decimal_places=2)
    points = models.PositiveBigIntegerField(_("points"))
    visit_date = models.DateTimeField(_("visit date"), default=timezone.now)
    notes = models.TextField(_("notes"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    created_by = models.CharField(_("created by"), max_length=100, blank=True)

    class Meta:
        verbose_name = _("visit")
        verbose_name_plural = _("visits")
        ordering = ["-visit_date"]
        indexes = [
            models.Index(fields=["tenant", "customer", "-visit_date"], name="tallyman_visit_cust_date_idx"),
            models.Index(fields=["tenant", "-visit_date"], name="tallyman_visit_tenant_date_idx"),
        ]

    def __str__(self):
        return f"{self.customer_id}: {self.amount} (+{self.points}pts)"
