"""Failure taxonomy for the ledger core.

Callers distinguish four families: bad input (``ValidationError``), a
business rule that rejected the request (``BusinessRuleViolation`` and
``NotFound``), a lost race for a balance row (``ConcurrencyConflict``) and
an unreachable store (``StorageUnavailable``). Nothing is persisted when any
of them is raised from a write path.
"""

INSUFFICIENT_CASE = "InsufficientCase"
INSUFFICIENT_UNIT = "InsufficientUnit"
NO_INVENTORY_RECORD = "NoInventoryRecord"
ALREADY_CANCELLED = "AlreadyCancelled"
NOT_CANCELLABLE = "NotCancellable"
OUTSIDE_CANCELLATION_WINDOW = "OutsideCancellationWindow"
HAS_SUBSEQUENT_ACTIVITY = "HasSubsequentActivity"
ALREADY_PROCESSED = "AlreadyProcessed"
ALREADY_COMPLETED = "AlreadyCompleted"
NO_ACTIVE_SELECTION = "NoActiveSelection"


class LedgerError(Exception):
    """Base class for every error raised by the ledger core."""

    code = "LedgerError"

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.code)
        if code is not None:
            self.code = code
        self.message = message or self.code


class ValidationError(LedgerError):
    """Raised when a request is malformed (missing field, zero quantity)."""

    code = "ValidationError"


class BusinessRuleViolation(LedgerError):
    """Raised when a well-formed request is rejected by a domain rule."""

    code = "BusinessRuleViolation"

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code, code=code)


class NotFound(LedgerError):
    code = "NotFound"


class ConcurrencyConflict(LedgerError):
    """Raised when another writer changed the same balance row first."""

    code = "ConcurrencyConflict"


class StorageUnavailable(LedgerError):
    code = "StorageUnavailable"


__all__ = [
    "ALREADY_CANCELLED",
    "ALREADY_COMPLETED",
    "ALREADY_PROCESSED",
    "BusinessRuleViolation",
    "ConcurrencyConflict",
    "HAS_SUBSEQUENT_ACTIVITY",
    "INSUFFICIENT_CASE",
    "INSUFFICIENT_UNIT",
    "LedgerError",
    "NOT_CANCELLABLE",
    "NO_ACTIVE_SELECTION",
    "NO_INVENTORY_RECORD",
    "NotFound",
    "OUTSIDE_CANCELLATION_WINDOW",
    "StorageUnavailable",
    "ValidationError",
]
