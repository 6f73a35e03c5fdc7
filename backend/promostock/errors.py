# Overview: Ledger error taxonomy shared by services, routes and the batch coordinator.

from __future__ import annotations


class LedgerError(Exception):
    """
    Base class for every ledger failure surfaced to a caller.

    Each error carries a stable machine code, a human message, a details dict
    with the offending quantity/limit, and the HTTP status routes should use.
    """
    code = "LEDGER_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class Unauthenticated(LedgerError):
    """No active acting employee is attached to the call."""
    code = "UNAUTHENTICATED"
    http_status = 401

    def __init__(self, message: str = "An active employee is required", details: dict | None = None):
        super().__init__(message, details)


class InvalidQuantity(LedgerError):
    """Quantity <= 0, or a required reference is missing or forbidden."""
    code = "INVALID_QUANTITY"
    http_status = 400


class NotFound(LedgerError):
    code = "NOT_FOUND"
    http_status = 404


class InsufficientAvailable(LedgerError):
    code = "INSUFFICIENT_AVAILABLE"
    http_status = 409

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Not enough available items. Requested {requested}, only {available} available.",
            details={"requested": requested, "available": available},
        )
        self.requested = requested
        self.available = available


class InsufficientCirculation(LedgerError):
    code = "INSUFFICIENT_CIRCULATION"
    http_status = 409

    def __init__(self, requested: int, in_circulation: int):
        super().__init__(
            f"Cannot move more than is in circulation. Requested {requested}, "
            f"only {in_circulation} in circulation.",
            details={"requested": requested, "in_circulation": in_circulation},
        )
        self.requested = requested
        self.in_circulation = in_circulation


class ConflictRetryable(LedgerError):
    """The conditional update kept losing races; the caller should retry."""
    code = "CONFLICT_RETRYABLE"
    http_status = 409

    def __init__(self, attempts: int):
        super().__init__(
            "The item was being changed by someone else. Please retry the action.",
            details={"attempts": attempts},
        )
        self.attempts = attempts


class StoreUnavailable(LedgerError):
    code = "STORE_UNAVAILABLE"
    http_status = 503

    def __init__(self, message: str = "Inventory store is unavailable", details: dict | None = None):
        super().__init__(message, details)
