"""
Tallyman JSON API.

Flow for every request:
    1. Resolves the caller through G1 (verified bearer token), except for
       methods listed in ``public_methods``
    2. Runs the service operation scoped to the caller's tenant
    3. Maps GateError to 401 and TallymanError codes to 4xx; anything else
       is logged and returned as a generic 500
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from tallyman.exceptions import TallymanError
from tallyman.gates import GateError, Gates
from tallyman.protocols.identity import Identity
from tallyman.services import customer as customer_service
from tallyman.services import employee as employee_service
from tallyman.services import reward as reward_service
from tallyman.services.history import HistoryService
from tallyman.services.ledger import LedgerService

logger = logging.getLogger("tallyman.api")


_STATUS_BY_CODE = {
    "INVALID_ARGUMENT": 400,
    "DUPLICATE_CUSTOMER": 400,
    "CUSTOMER_INACTIVE": 400,
    "REWARD_INACTIVE": 400,
    "INSUFFICIENT_POINTS": 400,
    "LEDGER_CONFLICT": 409,
}


def error_status(exc: TallymanError) -> int:
    if exc.is_not_found:
        return 404
    return _STATUS_BY_CODE.get(exc.code, 400)


# =============================================================================
# Serialization
# =============================================================================


def customer_dict(cust) -> dict:
    return {
        "id": cust.code,
        "tenantId": cust.tenant.code,
        "firstName": cust.first_name,
        "lastName": cust.last_name,
        "email": cust.email,
        "phone": cust.phone,
        "address": cust.address,
        "points": cust.points_balance,
        "status": cust.status,
        "createdAt": cust.created_at.isoformat(),
    }


def reward_dict(reward) -> dict:
    return {
        "id": reward.code,
        "tenantId": reward.tenant.code,
        "name": reward.name,
        "description": reward.description,
        "pointsRequired": reward.points_required,
        "status": reward.status,
        "redemptionCount": reward.redemption_count,
        "createdAt": reward.created_at.isoformat(),
    }


def visit_dict(visit) -> dict:
    return {
        "id": visit.pk,
        "tenantId": visit.tenant.code,
        "customerId": visit.customer.code,
        "amount": str(visit.amount),
        "points": visit.points,
        "notes": visit.notes,
        "visitDate": visit.visit_date.isoformat(),
    }


def employee_dict(employee) -> dict:
    return {
        "id": employee.code,
        "username": employee.username,
        "email": employee.email,
        "position": employee.position,
        "department": employee.department,
        "isActive": employee.is_active,
    }


# =============================================================================
# Base view
# =============================================================================


@method_decorator(csrf_exempt, name="dispatch")
class TenantApiView(View):
    """
    Base view: identity resolution, JSON parsing and error mapping.

    ``self.identity`` is the verified caller (None on public methods).
    """

    public_methods: tuple[str, ...] = ()
    identity: Identity | None = None

    def dispatch(self, request, *args, **kwargs):
        method = request.method.lower()
        if method not in self.http_method_names or not hasattr(self, method):
            return self.http_method_not_allowed(request, *args, **kwargs)

        try:
            if method not in self.public_methods:
                self.identity = Gates.bearer_identity(request.headers.get("Authorization"))
            return super().dispatch(request, *args, **kwargs)
        except GateError as exc:
            logger.warning("%s %s: %s", request.method, request.path, exc)
            return JsonResponse({"message": "Unauthorized"}, status=401)
        except TallymanError as exc:
            return self.error_response(exc)
        except Exception:
            logger.exception("%s %s failed", request.method, request.path)
            return JsonResponse({"message": "Internal server error"}, status=500)

    def error_response(self, exc: TallymanError) -> JsonResponse:
        return JsonResponse(
            {"message": exc.message, "code": exc.code},
            status=error_status(exc),
        )

    @staticmethod
    def json_body(request) -> dict:
        try:
            data = json.loads(request.body or b"{}")
        except (json.JSONDecodeError, ValueError):
            raise TallymanError("INVALID_ARGUMENT", message="Invalid JSON")
        if not isinstance(data, dict):
            raise TallymanError("INVALID_ARGUMENT", message="Expected a JSON object")
        return data


# =============================================================================
# Ledger endpoints
# =============================================================================


class VisitView(TenantApiView):
    """POST visits/ - log a visit and accrue points."""

    def post(self, request):
        data = self.json_body(request)
        visit = LedgerService.record_visit(
            self.identity.tenant_code,
            data.get("customerId"),
            data.get("amount"),
            points=data.get("points"),
            notes=data.get("notes") or "",
            created_by=self.identity.actor,
        )
        return JsonResponse({"message": "Visit logged successfully", "visit": visit_dict(visit)})


class RewardRedeemView(TenantApiView):
    """POST rewards/redeem/ - spend points on a reward of the caller's tenant."""

    def post(self, request):
        data = self.json_body(request)
        result = LedgerService.redeem_reward(
            self.identity.tenant_code,
            data.get("customerId"),
            data.get("rewardId"),
            created_by=self.identity.actor,
        )
        return JsonResponse(
            {
                "message": "Reward redeemed successfully",
                "remainingPoints": result.remaining_points,
            }
        )

    def error_response(self, exc: TallymanError) -> JsonResponse:
        # Redemption failures other than conflicts are all client errors
        status = 409 if exc.code == "LEDGER_CONFLICT" else 400
        return JsonResponse({"message": exc.message, "code": exc.code}, status=status)


class TransactionListView(TenantApiView):
    """GET transactions/?customerId=&type= - ledger history, newest first."""

    def get(self, request):
        entries = HistoryService.list_transactions(
            self.identity.tenant_code,
            request.GET.get("customerId"),
            request.GET.get("type") or None,
        )
        return JsonResponse({"transactions": [entry.as_dict() for entry in entries]})


# =============================================================================
# Catalog endpoints
# =============================================================================


class RewardListView(TenantApiView):
    """GET rewards/ (public) and POST rewards/ (business owner)."""

    public_methods = ("get", "head")

    def get(self, request):
        page = reward_service.list_rewards(
            tenant_code=request.GET.get("tenantId") or None,
            status=request.GET.get("status") or None,
            page=request.GET.get("page"),
            limit=request.GET.get("limit"),
        )
        return JsonResponse(
            {
                "rewards": [reward_dict(r) for r in page.items],
                "pagination": page.pagination(),
            }
        )

    def post(self, request):
        data = self.json_body(request)
        reward = reward_service.create(
            self.identity,
            name=data.get("name"),
            description=data.get("description"),
            points_required=data.get("pointsRequired"),
            status=data.get("status") or "active",
        )
        return JsonResponse({"message": "Reward created successfully", "reward": reward_dict(reward)})


class RewardDetailView(TenantApiView):
    """DELETE rewards/<code>/ and PATCH rewards/<code>/ (status)."""

    def delete(self, request, code):
        reward_service.delete(self.identity, code)
        return JsonResponse({"message": "Reward deleted successfully"})

    def patch(self, request, code):
        data = self.json_body(request)
        reward = reward_service.set_status(self.identity, code, data.get("status"))
        return JsonResponse({"message": "Reward updated successfully", "reward": reward_dict(reward)})


# =============================================================================
# Customer and employee endpoints
# =============================================================================


class CustomerListView(TenantApiView):
    """GET customers/?search=&page=&limit= and POST customers/."""

    def get(self, request):
        page = customer_service.search(
            self.identity.tenant_code,
            request.GET.get("search", ""),
            page=request.GET.get("page"),
            limit=request.GET.get("limit"),
        )
        return JsonResponse(
            {
                "customers": [customer_dict(c) for c in page.items],
                "pagination": page.pagination(),
            }
        )

    def post(self, request):
        data = self.json_body(request)
        cust = customer_service.register(
            self.identity.tenant_code,
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address") or "",
        )
        return JsonResponse({"message": "Customer created successfully", "customer": customer_dict(cust)})


class CustomerDetailView(TenantApiView):
    """GET/PUT customers/<code>/."""

    def get(self, request, code):
        cust = customer_service.require(self.identity.tenant_code, code)
        return JsonResponse({"customer": customer_dict(cust)})

    def put(self, request, code):
        data = self.json_body(request)
        if not (data.get("firstName") and data.get("lastName") and data.get("email")):
            raise TallymanError(
                "INVALID_ARGUMENT",
                message="First name, last name, and email are required",
            )
        cust = customer_service.update(
            self.identity.tenant_code,
            code,
            first_name=data["firstName"],
            last_name=data["lastName"],
            email=data["email"],
            phone=data.get("phone") or "",
            address=data.get("address") or "",
        )
        return JsonResponse({"message": "Customer updated successfully", "customer": customer_dict(cust)})


class EmployeeListView(TenantApiView):
    """GET employees/."""

    def get(self, request):
        employees = employee_service.list_employees(self.identity.tenant_code)
        return JsonResponse({"employees": [employee_dict(e) for e in employees]})


class EmployeeStatusView(TenantApiView):
    """PATCH employees/<code>/status/ - business owner toggles isActive."""

    def patch(self, request, code):
        data = self.json_body(request)
        employee = employee_service.set_active(self.identity, code, data.get("isActive"))
        return JsonResponse(
            {
                "message": f"Employee {'activated' if employee.is_active else 'deactivated'} successfully",
                "employee": employee_dict(employee),
            }
        )
