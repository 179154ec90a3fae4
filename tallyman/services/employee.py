"""Employee service - listing and active-status toggling."""

import logging

from tallyman.exceptions import TallymanError
from tallyman.gates import Gates
from tallyman.models import Employee
from tallyman.protocols.identity import Identity, Role

logger = logging.getLogger(__name__)


def list_employees(tenant_code: str) -> list[Employee]:
    """List employees of a tenant."""
    return list(Employee.objects.filter(tenant__code=tenant_code))


def set_active(identity: Identity, code: str, is_active) -> Employee:
    """
    Enable or disable an employee of the caller's tenant.

    Raises:
        GateError: If the caller is not a business owner
        TallymanError: INVALID_ARGUMENT, EMPLOYEE_NOT_FOUND
    """
    Gates.role_allowed(identity, Role.BUSINESS_OWNER)

    if not isinstance(is_active, bool):
        raise TallymanError("INVALID_ARGUMENT", message="Invalid status value")

    try:
        employee = Employee.objects.get(tenant__code=identity.tenant_code, code=code)
    except Employee.DoesNotExist:
        raise TallymanError("EMPLOYEE_NOT_FOUND", employee_code=code)

    employee.is_active = is_active
    employee.save(update_fields=["is_active", "updated_at"])
    logger.info(
        "Employee %s %s by %s",
        code,
        "activated" if is_active else "deactivated",
        identity.actor,
    )
    return employee
