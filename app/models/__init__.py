# Models package
from .user import User, EmailAddress
from .listing import Listing
from .inventory_calendar import InventoryDay
from .booking import Booking, BookingStatus
from .booking_request import BookingRequest, BookingRequestStatus

__all__ = [
    "User", "EmailAddress",
    "Listing",
    "InventoryDay",
    "Booking", "BookingStatus",
    "BookingRequest", "BookingRequestStatus",
]
