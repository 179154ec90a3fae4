"""Employee model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Employee(models.Model):
    """Staff member of a tenant. Credentials live in the identity provider."""

    tenant = models.ForeignKey(
        "tallyman.Tenant",
        on_delete=models.CASCADE,
        related_name="employees",
        verbose_name=_("tenant"),
    )
    code = models.CharField(
        _("employee id"),
        max_length=50,
        help_text=_("Tenant-assigned employee identifier"),
    )
    username = models.CharField(_("username"), max_length=50, unique=True)
    email = models.EmailField(_("email"), unique=True)
    position = models.CharField(_("position"), max_length=100, blank=True)
    department = models.CharField(_("department"), max_length=100, blank=True)
    is_active = models.BooleanField(_("active"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("employee")
        verbose_name_plural = _("employees")
        ordering = ["username"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "code"],
                name="tallyman_employee_unique_tenant_code",
            ),
        ]

    def __str__(self):
        return f"{self.username} ({self.code})"
