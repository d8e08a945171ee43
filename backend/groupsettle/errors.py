"""Errors raised by the settlement engine and its ledger access checks."""
from typing import Optional


class SettlementError(Exception):
    status_code = 500
    detail = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class Forbidden(SettlementError):
    status_code = 403
    detail = "You don't have access to this group"


class NotFound(SettlementError):
    status_code = 404
    detail = "Not found"


class InvariantViolation(SettlementError):
    """Balances did not sum to zero, so the debt walk left an unmatched remainder."""

    status_code = 500
    detail = "Could not reconcile settlements"

    def __init__(self, balances: dict, remaining: dict):
        self.balances = balances
        self.remaining = remaining
        super().__init__()


class Unavailable(SettlementError):
    """Persistence failed; the whole recompute can be retried."""

    status_code = 503
    detail = "Settlement storage unavailable, please retry"
