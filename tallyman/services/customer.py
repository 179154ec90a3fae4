"""Customer service - tenant-scoped registration, lookup and search.

Every function takes the caller's tenant code; no query leaves that tenant.
Balances are never written here (see services.ledger).
"""

import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import Q

from tallyman.exceptions import TallymanError
from tallyman.models import Customer, CustomerStatus
from tallyman.pagination import paginate
from tallyman.protocols.ledger import Page
from tallyman.services import tenant as tenant_service
from tallyman.signals import customer_registered

logger = logging.getLogger(__name__)


def get(tenant_code: str, code: str) -> Customer | None:
    """Get customer by code within a tenant."""
    try:
        return Customer.objects.select_related("tenant").get(
            tenant__code=tenant_code, code=code
        )
    except Customer.DoesNotExist:
        return None


def require(tenant_code: str, code: str) -> Customer:
    """Get customer within a tenant or raise CUSTOMER_NOT_FOUND."""
    cust = get(tenant_code, code)
    if not cust:
        raise TallymanError("CUSTOMER_NOT_FOUND", customer_code=code)
    return cust


def search(tenant_code: str, query: str = "", page=None, limit=None) -> Page:
    """Case-insensitive partial match on first name, last name, or email."""
    qs = Customer.objects.filter(tenant__code=tenant_code)

    if query:
        qs = qs.filter(
            Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(email__icontains=query)
        )

    return paginate(qs.order_by("-created_at", "-id"), page, limit)


def points_by_tenant(email: str) -> dict[str, int]:
    """Balance of every profile registered with ``email``, keyed by tenant code."""
    rows = Customer.objects.filter(email__iexact=email.strip()).values_list(
        "tenant__code", "points_balance"
    )
    return dict(rows)


def _validated_email(email: str) -> str:
    email = (email or "").lower().strip()
    try:
        validate_email(email)
    except ValidationError:
        raise TallymanError("INVALID_ARGUMENT", message="Invalid email", field="email")
    return email


def register(
    tenant_code: str,
    first_name: str,
    last_name: str,
    email: str,
    phone: str,
    address: str = "",
    code: str | None = None,
) -> Customer:
    """
    Register a customer under a tenant with a zero balance.

    Raises:
        TallymanError: TENANT_NOT_FOUND, INVALID_ARGUMENT, DUPLICATE_CUSTOMER
    """
    if not (first_name and last_name and email and phone):
        raise TallymanError(
            "INVALID_ARGUMENT",
            message="First name, last name, email, and phone are required",
        )

    tenant = tenant_service.require(tenant_code)
    email = _validated_email(email)

    if Customer.objects.filter(tenant=tenant).filter(Q(email=email) | Q(phone=phone)).exists():
        raise TallymanError(
            "DUPLICATE_CUSTOMER",
            message="Customer with this email or phone number already exists",
        )

    fields = {
        "tenant": tenant,
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": phone,
        "address": address,
    }
    if code:
        fields["code"] = code

    try:
        with transaction.atomic():
            cust = Customer.objects.create(**fields)
    except IntegrityError:
        raise TallymanError("DUPLICATE_CUSTOMER", email=email)

    logger.info("Customer %s registered under tenant %s", cust.code, tenant_code)
    customer_registered.send(sender=Customer, customer=cust)
    return cust


UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
}


def update(tenant_code: str, code: str, **fields) -> Customer:
    """Update customer profile fields (only whitelisted fields are accepted)."""
    cust = require(tenant_code, code)

    changed = []
    for key, value in fields.items():
        if key not in UPDATABLE_FIELDS:
            continue
        if key == "email":
            value = _validated_email(value)
        setattr(cust, key, value)
        changed.append(key)

    if not changed:
        return cust

    # points_balance is owned by the ledger; never write it from a stale instance
    try:
        with transaction.atomic():
            cust.save(update_fields=[*changed, "updated_at"])
    except IntegrityError:
        raise TallymanError("DUPLICATE_CUSTOMER", email=cust.email)
    return cust


def set_status(tenant_code: str, code: str, status: str) -> Customer:
    """Soft-activate or deactivate a customer. Customers are never deleted."""
    if status not in CustomerStatus.values:
        raise TallymanError(
            "INVALID_ARGUMENT",
            message=f"Unknown status: {status}",
            allowed=list(CustomerStatus.values),
        )

    cust = require(tenant_code, code)
    if cust.status != status:
        cust.status = status
        cust.save(update_fields=["status", "updated_at"])
    return cust
