"""Tallyman exceptions."""


class BaseError(Exception):
    """
    Structured exception carrying a machine-readable code.

    Subclasses provide ``_default_messages`` keyed by code. Extra keyword
    arguments are kept in ``data`` for callers and API responses.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class TallymanError(BaseError):
    """
    Structured exception for ledger and record-store operations.

    Usage:
        try:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        except TallymanError as e:
            if e.code == "INSUFFICIENT_POINTS":
                show_balance(e.data["available"])
    """

    _default_messages = {
        "TENANT_NOT_FOUND": "Tenant not found",
        "CUSTOMER_NOT_FOUND": "Customer not found",
        "CUSTOMER_INACTIVE": "Customer is inactive",
        "REWARD_NOT_FOUND": "Reward not found",
        "EMPLOYEE_NOT_FOUND": "Employee not found",
        "INVALID_ARGUMENT": "Invalid argument",
        "DUPLICATE_CUSTOMER": "Customer with this email already exists",
        "REWARD_INACTIVE": "Reward is not available for redemption",
        "INSUFFICIENT_POINTS": "Insufficient points",
        "LEDGER_CONFLICT": "Balance is being updated, please retry",
    }

    @property
    def is_not_found(self) -> bool:
        return self.code.endswith("_NOT_FOUND")
