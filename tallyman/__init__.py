"""
Django Tallyman - Tenant-scoped loyalty points ledger.

Usage:
    from tallyman import LedgerService, HistoryService
    from tallyman.gates import Gates, GateError

    identity = Gates.bearer_identity(request.headers.get("Authorization"))
    LedgerService.record_visit(identity.tenant_code, "CUST-001", amount="50.00")
    result = LedgerService.redeem_reward(identity.tenant_code, "CUST-001", "RWD-COFFEE")
    history = HistoryService.list_transactions(identity.tenant_code, "CUST-001")
"""


def __getattr__(name):
    if name == "LedgerService":
        from tallyman.services.ledger import LedgerService

        return LedgerService
    if name == "HistoryService":
        from tallyman.services.history import HistoryService

        return HistoryService
    if name == "Gates":
        from tallyman.gates import Gates

        return Gates
    if name == "GateError":
        from tallyman.gates import GateError

        return GateError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LedgerService", "HistoryService", "Gates", "GateError"]
__version__ = "0.1.0"
