"""Tenant model."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Tenant(models.Model):
    """
    Independent business account; the unit of data isolation.

    ``code`` is the tenant identifier carried in bearer tokens.
    """

    code = models.SlugField(_("code"), max_length=50, unique=True)
    name = models.CharField(_("name"), max_length=200)
    is_active = models.BooleanField(_("active"), default=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("tenant")
        verbose_name_plural = _("tenants")
        ordering = ["name"]

    def __str__(self):
        return self.name
