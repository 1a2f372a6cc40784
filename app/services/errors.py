"""
Booking Engine Errors

Every failure the engine can report carries:
- a stable machine code (e.g. "DATES_UNAVAILABLE")
- a category used to pick the HTTP status
- whether retrying the whole operation can help

Helpers raise these; public operations catch them at their boundary
and turn them into an OperationResult.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Dict, Any


class ErrorCategory(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INFRASTRUCTURE = "infrastructure"


# HTTP status per category
CATEGORY_STATUS = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.INFRASTRUCTURE: 503,
}


@dataclass
class ErrorInfo:
    """Serializable description of a failed operation"""
    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    details: Optional[Dict[str, Any]] = None

    @property
    def status_code(self) -> int:
        return CATEGORY_STATUS[self.category]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.details:
            data["details"] = self.details
        return data


class BookingEngineError(Exception):
    code = "BOOKING_ENGINE_ERROR"
    category = ErrorCategory.INFRASTRUCTURE
    retryable = False
    default_message = "Booking operation failed"

    def __init__(self, message: Optional[str] = None, **details):
        self.message = message or self.default_message
        self.details = details or None
        super().__init__(self.message)

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(
            code=self.code,
            message=self.message,
            category=self.category,
            retryable=self.retryable,
            details=self.details,
        )


# ================================
# Validation
# ================================

class ValidationFailed(BookingEngineError):
    code = "VALIDATION_FAILED"
    category = ErrorCategory.VALIDATION
    default_message = "Invalid input"


class InvalidRange(ValidationFailed):
    code = "INVALID_RANGE"
    default_message = "Invalid date range"


class BelowMinimumStay(ValidationFailed):
    code = "BELOW_MINIMUM_STAY"
    default_message = "Booking must be for at least one day"


class InvalidDateRange(ValidationFailed):
    code = "INVALID_DATE_RANGE"
    default_message = "Check-out date must be after check-in date"


# ================================
# Not found
# ================================

class NotFound(BookingEngineError):
    category = ErrorCategory.NOT_FOUND


class ListingNotFound(NotFound):
    code = "LISTING_NOT_FOUND"
    default_message = "Listing or host not found"


class GuestNotFound(NotFound):
    code = "GUEST_NOT_FOUND"
    default_message = "Guest not found"


class RequestNotFound(NotFound):
    code = "REQUEST_NOT_FOUND"
    default_message = "Booking request not found or you are not the owner of the listing"


class BookingNotFound(NotFound):
    code = "BOOKING_NOT_FOUND"
    default_message = "Booking not found"


# ================================
# Conflict
# ================================

class Conflict(BookingEngineError):
    category = ErrorCategory.CONFLICT


class DatesUnavailable(Conflict):
    code = "DATES_UNAVAILABLE"
    default_message = "One or more dates are not available"


class InvalidTransition(Conflict):
    code = "INVALID_TRANSITION"
    default_message = "Invalid status transition"


class ListingNotPublished(Conflict):
    code = "LISTING_NOT_PUBLISHED"
    default_message = "Listing is not published"


# ================================
# Infrastructure
# ================================

class StoreUnavailable(BookingEngineError):
    code = "STORE_UNAVAILABLE"
    category = ErrorCategory.INFRASTRUCTURE
    retryable = True
    default_message = "The booking store is temporarily unavailable, please retry"
