# Services package
from .errors import (
    ErrorCategory, ErrorInfo, BookingEngineError,
    ValidationFailed, InvalidRange, BelowMinimumStay, InvalidDateRange,
    ListingNotFound, GuestNotFound, RequestNotFound, BookingNotFound,
    DatesUnavailable, InvalidTransition, ListingNotPublished, StoreUnavailable
)
from .results import OperationResult, operation_boundary
from .directory import ListingDirectory, UserDirectory
from .inventory_service import InventoryService
from .pricing_engine import PricingCalculator, PriceQuote, DailyPrice
from .availability import AvailabilityValidator, StayRange, normalize_range
from .notification_service import EmailNotifier, Notifier, get_notifier, notify_safely
from .booking_request_service import BookingRequestService
from .booking_service import BookingService
from .calendar_service import CalendarService

__all__ = [
    "ErrorCategory", "ErrorInfo", "BookingEngineError",
    "ValidationFailed", "InvalidRange", "BelowMinimumStay", "InvalidDateRange",
    "ListingNotFound", "GuestNotFound", "RequestNotFound", "BookingNotFound",
    "DatesUnavailable", "InvalidTransition", "ListingNotPublished", "StoreUnavailable",
    "OperationResult", "operation_boundary",
    "ListingDirectory", "UserDirectory",
    "InventoryService",
    "PricingCalculator", "PriceQuote", "DailyPrice",
    "AvailabilityValidator", "StayRange", "normalize_range",
    "EmailNotifier", "Notifier", "get_notifier", "notify_safely",
    "BookingRequestService",
    "BookingService",
    "CalendarService",
]
