"""Pytest fixtures for Tallyman tests."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tallyman.models import Customer, Employee, Reward, Tenant
from tallyman.protocols.identity import Identity, Role

JWT_SECRET = "tallyman-test-jwt-secret-0123456789abcdef"


def sign_token(tenant_code="acme", role="business_owner", secret=JWT_SECRET, expires_in=3600, **claims):
    """Sign a token the way the identity provider does."""
    payload = {
        "id": "user-1",
        "username": "owner",
        "tenantId": tenant_code,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def tenant(db):
    """Create the main test tenant."""
    return Tenant.objects.create(code="acme", name="Acme Coffee")


@pytest.fixture
def other_tenant(db):
    """Create a second, unrelated tenant."""
    return Tenant.objects.create(code="globex", name="Globex Car Wash")


@pytest.fixture
def customer(tenant):
    """Create a customer with a zero balance."""
    return Customer.objects.create(
        tenant=tenant,
        code="CUST-001",
        first_name="John",
        last_name="Doe",
        email="john@example.com",
        phone="5550001",
    )


@pytest.fixture
def funded_customer(customer):
    """Customer holding 50 points earned through a visit."""
    from tallyman.services.ledger import LedgerService

    LedgerService.record_visit("acme", "CUST-001", amount=50)
    customer.refresh_from_db()
    return customer


@pytest.fixture
def reward(tenant):
    """Create a 30-point reward."""
    return Reward.objects.create(
        tenant=tenant,
        code="RWD-COFFEE",
        name="Free Coffee",
        description="One medium coffee",
        points_required=30,
    )


@pytest.fixture
def foreign_reward(other_tenant):
    """Reward owned by another tenant."""
    return Reward.objects.create(
        tenant=other_tenant,
        code="RWD-WASH",
        name="Free Wash",
        description="Basic wash",
        points_required=10,
    )


@pytest.fixture
def employee(tenant):
    return Employee.objects.create(
        tenant=tenant,
        code="EMP-01",
        username="alice",
        email="alice@acme.example",
        position="Barista",
        department="Front",
    )


@pytest.fixture
def owner():
    return Identity(tenant_code="acme", role=Role.BUSINESS_OWNER, user_id="user-1", username="owner")


@pytest.fixture
def staff():
    return Identity(tenant_code="acme", role=Role.EMPLOYEE, user_id="user-2", username="alice")


@pytest.fixture
def make_token():
    """Sign tokens with custom claims."""
    return sign_token


@pytest.fixture
def owner_token():
    return sign_token()


@pytest.fixture
def staff_token():
    return sign_token(role="employee", username="alice", id="user-2")
