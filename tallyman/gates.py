"""
Tallyman Gates - Identity and tenant validation rules.

G1: BearerIdentity - Authorization header carries a verified token with tenant + role
G2: TenantScope - Caller may only touch records of its own tenant
G3: RoleAllowed - Caller role is permitted for the operation

Every ledger entry point resolves the caller through G1; no other code path
reads token payloads.
"""

import logging
from dataclasses import dataclass

import jwt

from tallyman.protocols.identity import Identity, Role

logger = logging.getLogger(__name__)


class GateError(Exception):
    """Gate validation error."""

    def __init__(self, gate_name: str, message: str, details: dict | None = None):
        self.gate_name = gate_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Tallyman validation gates."""

    # =========================================================================
    # G1: Bearer Identity
    # =========================================================================

    @classmethod
    def bearer_identity(cls, authorization: str | None) -> Identity:
        """
        G1: Resolve the caller from an ``Authorization: Bearer <jwt>`` header.

        The token signature and expiry are verified with the configured
        secret. Claims used: tenantId, role, id/userId, username, customerId.

        Args:
            authorization: Raw Authorization header value

        Returns:
            Identity built from verified claims

        Raises:
            GateError: If the header is missing/malformed or the token is invalid
        """
        from tallyman.conf import tallyman_settings

        if not authorization or not authorization.startswith("Bearer "):
            raise GateError("G1_BearerIdentity", "Missing bearer token.")

        token = authorization[len("Bearer "):].strip()
        secret = tallyman_settings.JWT_SECRET
        if not secret:
            logger.error("G1_BearerIdentity: TALLYMAN['JWT_SECRET'] is not configured")
            raise GateError("G1_BearerIdentity", "Token verification unavailable.")

        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=tallyman_settings.JWT_ALGORITHMS,
            )
        except jwt.ExpiredSignatureError:
            raise GateError("G1_BearerIdentity", "Token expired.")
        except jwt.InvalidTokenError as exc:
            raise GateError("G1_BearerIdentity", "Invalid token.", {"reason": str(exc)})

        tenant_code = claims.get("tenantId")
        if not tenant_code:
            raise GateError("G1_BearerIdentity", "Token has no tenant.")

        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise GateError(
                "G1_BearerIdentity",
                "Token role not recognized.",
                {"role": claims.get("role")},
            )

        user_id = claims.get("id") or claims.get("userId")
        return Identity(
            tenant_code=str(tenant_code),
            role=role,
            user_id=str(user_id) if user_id else None,
            username=claims.get("username"),
            customer_code=claims.get("customerId"),
        )

    @classmethod
    def check_bearer_identity(cls, authorization: str | None) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.bearer_identity(authorization)
            return True
        except GateError:
            return False

    # =========================================================================
    # G2: Tenant Scope
    # =========================================================================

    @classmethod
    def tenant_scope(cls, identity: Identity, tenant_code: str) -> GateResult:
        """
        G2: Identity may only operate on its own tenant.

        Raises:
            GateError: If tenant_code differs from the identity's tenant
        """
        if identity.tenant_code != tenant_code:
            raise GateError(
                "G2_TenantScope",
                "Cross-tenant access denied.",
                {"tenant": tenant_code},
            )

        return GateResult(True, "G2_TenantScope")

    @classmethod
    def check_tenant_scope(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.tenant_scope(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G3: Role Allowed
    # =========================================================================

    @classmethod
    def role_allowed(cls, identity: Identity, *roles: Role) -> GateResult:
        """
        G3: Identity role must be one of ``roles``.

        Raises:
            GateError: If the role is not permitted
        """
        if identity.role not in roles:
            raise GateError(
                "G3_RoleAllowed",
                f"Role not allowed: {identity.role.value}",
                {"allowed": [r.value for r in roles]},
            )

        return GateResult(True, "G3_RoleAllowed")

    @classmethod
    def check_role_allowed(cls, identity: Identity, *roles: Role) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.role_allowed(identity, *roles)
            return True
        except GateError:
            return False
