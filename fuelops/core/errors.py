"""Error codes and service exceptions.

Every failure a core operation can report carries an ``ErrorCode``. Codes
are grouped into categories so callers (and the HTTP layer) can tell a bad
input from a wrong state, a missing justification or a store failure.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """How a failure should be treated by the caller."""

    VALIDATION = "validation"  # bad input, fix and retry
    PRECONDITION = "precondition"  # wrong state for the operation
    POLICY = "policy"  # missing justification, resubmit with it
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"  # store failure, nothing applied


class ErrorCode(str, Enum):
    """Named failure reasons."""

    # Meter readings
    NEGATIVE_START = "negative_start"
    NEGATIVE_END = "negative_end"
    END_BEFORE_START = "end_before_start"
    METER_NOT_FOUND = "meter_not_found"

    # Shift lifecycle
    SHIFT_NOT_FOUND = "shift_not_found"
    SHIFT_CONTEXT_INCOMPLETE = "shift_context_incomplete"
    SHIFT_NOT_OPEN = "shift_not_open"
    CLOSE_VALIDATION_FAILED = "close_validation_failed"
    VARIANCE_JUSTIFICATION_REQUIRED = "variance_justification_required"
    CLOSE_FAILED = "close_failed"
    NOT_YET_CLOSED = "not_yet_closed"
    ALREADY_LOCKED = "already_locked"
    LOCKED = "locked"
    CLOSED = "closed"
    LOCK_FAILED = "lock_failed"
    PREDECESSOR_NOT_FOUND = "predecessor_not_found"
    PREDECESSOR_NOT_CLOSED = "predecessor_not_closed"
    CARRY_OVER_FAILED = "carry_over_failed"
    STATION_NOT_FOUND = "station_not_found"
    SHIFT_ALREADY_EXISTS = "shift_already_exists"
    OPEN_SHIFT_EXISTS = "open_shift_exists"

    # Anomalies
    MISSING_JUSTIFICATION = "missing_justification"
    ANOMALY_NOT_FOUND = "anomaly_not_found"
    ALREADY_REVIEWED = "already_reviewed"

    # Inventory, sales and pricing
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVENTORY_UPDATE_FAILED = "inventory_update_failed"
    PRODUCT_NOT_FOUND = "product_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    WRITE_FAILED = "write_failed"
    NO_PRICE_CONFIGURED = "no_price_configured"
    SET_PRICE_FAILED = "set_price_failed"
    PRICE_STARTS_TOO_EARLY = "price_starts_too_early"


_CATEGORIES: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.NEGATIVE_START: ErrorCategory.VALIDATION,
    ErrorCode.NEGATIVE_END: ErrorCategory.VALIDATION,
    ErrorCode.END_BEFORE_START: ErrorCategory.VALIDATION,
    ErrorCode.CLOSE_VALIDATION_FAILED: ErrorCategory.PRECONDITION,
    ErrorCode.SHIFT_NOT_OPEN: ErrorCategory.PRECONDITION,
    ErrorCode.NOT_YET_CLOSED: ErrorCategory.PRECONDITION,
    ErrorCode.ALREADY_LOCKED: ErrorCategory.PRECONDITION,
    ErrorCode.LOCKED: ErrorCategory.PRECONDITION,
    ErrorCode.CLOSED: ErrorCategory.PRECONDITION,
    ErrorCode.PREDECESSOR_NOT_CLOSED: ErrorCategory.PRECONDITION,
    ErrorCode.SHIFT_ALREADY_EXISTS: ErrorCategory.PRECONDITION,
    ErrorCode.OPEN_SHIFT_EXISTS: ErrorCategory.PRECONDITION,
    ErrorCode.ALREADY_REVIEWED: ErrorCategory.PRECONDITION,
    ErrorCode.INSUFFICIENT_STOCK: ErrorCategory.PRECONDITION,
    ErrorCode.NO_PRICE_CONFIGURED: ErrorCategory.PRECONDITION,
    ErrorCode.PRICE_STARTS_TOO_EARLY: ErrorCategory.PRECONDITION,
    ErrorCode.SHIFT_CONTEXT_INCOMPLETE: ErrorCategory.PRECONDITION,
    ErrorCode.VARIANCE_JUSTIFICATION_REQUIRED: ErrorCategory.POLICY,
    ErrorCode.MISSING_JUSTIFICATION: ErrorCategory.POLICY,
    ErrorCode.SHIFT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.PREDECESSOR_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.STATION_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.METER_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.ANOMALY_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.PRODUCT_NOT_FOUND: ErrorCategory.NOT_FOUND,
    ErrorCode.TRANSACTION_NOT_FOUND: ErrorCategory.NOT_FOUND,
}


def category_of(code: ErrorCode) -> ErrorCategory:
    """Category of an error code; unlisted codes are persistence failures."""
    return _CATEGORIES.get(code, ErrorCategory.PERSISTENCE)


class ServiceError(Exception):
    """Raised by read-side lookups that cannot proceed."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def category(self) -> ErrorCategory:
        return category_of(self.code)


class NotFoundError(ServiceError):
    """A required entity does not exist."""


class ShiftContextError(ServiceError):
    """A shift exists but a relation it depends on is missing."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.SHIFT_CONTEXT_INCOMPLETE, message)
