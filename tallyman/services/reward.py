"""Reward catalog service.

Catalog writes are gated to the tenant's business owner. Listing is public,
optionally narrowed to one tenant.
"""

import logging

from tallyman.exceptions import TallymanError
from tallyman.gates import Gates
from tallyman.models import Reward, RewardStatus
from tallyman.pagination import paginate
from tallyman.protocols.identity import Identity, Role
from tallyman.protocols.ledger import Page
from tallyman.services import tenant as tenant_service
from tallyman.services.ledger import MAX_POINTS

logger = logging.getLogger(__name__)


def get(tenant_code: str, code: str) -> Reward | None:
    """Get reward by code within a tenant."""
    try:
        return Reward.objects.select_related("tenant").get(
            tenant__code=tenant_code, code=code
        )
    except Reward.DoesNotExist:
        return None


def require(tenant_code: str, code: str) -> Reward:
    """Get reward within a tenant or raise REWARD_NOT_FOUND."""
    reward = get(tenant_code, code)
    if not reward:
        raise TallymanError("REWARD_NOT_FOUND", reward_code=code)
    return reward


def _validated_status(status: str) -> str:
    if status not in RewardStatus.values:
        raise TallymanError(
            "INVALID_ARGUMENT",
            message=f"Unknown status: {status}",
            allowed=list(RewardStatus.values),
        )
    return status


def list_rewards(
    tenant_code: str | None = None,
    status: str | None = None,
    page=None,
    limit=None,
) -> Page:
    """List rewards cheapest first."""
    qs = Reward.objects.select_related("tenant")
    if tenant_code:
        qs = qs.filter(tenant__code=tenant_code)
    if status:
        qs = qs.filter(status=_validated_status(status))
    return paginate(qs.order_by("points_required", "name", "id"), page, limit)


def create(
    identity: Identity,
    name: str,
    description: str,
    points_required,
    status: str = RewardStatus.ACTIVE,
) -> Reward:
    """
    Add a reward to the caller's catalog.

    Raises:
        GateError: If the caller is not a business owner
        TallymanError: INVALID_ARGUMENT, TENANT_NOT_FOUND
    """
    Gates.role_allowed(identity, Role.BUSINESS_OWNER)

    if not name or not description:
        raise TallymanError("INVALID_ARGUMENT", message="Name and description are required")
    if isinstance(points_required, bool):
        raise TallymanError("INVALID_ARGUMENT", message="pointsRequired must be an integer")
    try:
        points_required = int(points_required)
    except (TypeError, ValueError):
        raise TallymanError("INVALID_ARGUMENT", message="pointsRequired must be an integer")
    if points_required < 0:
        raise TallymanError("INVALID_ARGUMENT", message="pointsRequired must not be negative")
    if points_required > MAX_POINTS:
        raise TallymanError("INVALID_ARGUMENT", message=f"pointsRequired must not exceed {MAX_POINTS}")

    tenant = tenant_service.require(identity.tenant_code)
    reward = Reward.objects.create(
        tenant=tenant,
        name=name,
        description=description,
        points_required=points_required,
        status=_validated_status(status),
    )
    logger.info("Reward %s created by %s for tenant %s", reward.code, identity.actor, tenant.code)
    return reward


def delete(identity: Identity, code: str) -> None:
    """
    Delete a reward from the caller's catalog.

    Past REWARD_REDEEMED transactions stay in the ledger, unlinked.
    """
    Gates.role_allowed(identity, Role.BUSINESS_OWNER)
    reward = require(identity.tenant_code, code)
    reward.delete()
    logger.info("Reward %s deleted by %s", code, identity.actor)


def set_status(identity: Identity, code: str, status: str) -> Reward:
    """Activate or deactivate a reward."""
    Gates.role_allowed(identity, Role.BUSINESS_OWNER)
    reward = require(identity.tenant_code, code)
    reward.status = _validated_status(status)
    reward.save(update_fields=["status", "updated_at"])
    return reward
