"""
Booking Core Errors
Error taxonomy shared by the relationship store, fee engine and booking lifecycle
"""

from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    """Error type classification"""

    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    VALIDATION = "validation"
    SLOT_UNAVAILABLE = "slot_unavailable"
    FORBIDDEN = "forbidden"
    STORE_UNAVAILABLE = "store_unavailable"
    PAYMENT_FAILED = "payment_failed"


class BookingCoreError(Exception):
    """Base class for every error raised by booking core"""

    error_type: ErrorType = ErrorType.VALIDATION
    status_code: int = 400

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses"""
        payload = {"detail": self.message, "error_type": self.error_type.value}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFound(BookingCoreError):
    error_type = ErrorType.NOT_FOUND
    status_code = 404


class InvalidTransition(BookingCoreError):
    error_type = ErrorType.INVALID_TRANSITION
    status_code = 409


class ConcurrencyConflict(BookingCoreError):
    error_type = ErrorType.CONCURRENCY_CONFLICT
    status_code = 409


class ValidationError(BookingCoreError, ValueError):
    error_type = ErrorType.VALIDATION
    status_code = 422


class SlotUnavailable(BookingCoreError):
    error_type = ErrorType.SLOT_UNAVAILABLE
    status_code = 409


class Forbidden(BookingCoreError):
    error_type = ErrorType.FORBIDDEN
    status_code = 403


class StoreUnavailable(BookingCoreError):
    error_type = ErrorType.STORE_UNAVAILABLE
    status_code = 503


class PaymentFailed(BookingCoreError):
    error_type = ErrorType.PAYMENT_FAILED
    status_code = 502
