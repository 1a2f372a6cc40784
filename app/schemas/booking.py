from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Dict, Union
from datetime import datetime, date
from decimal import Decimal
import re

from ..models.booking import BookingStatus
from ..models.booking_request import BookingRequestStatus

# Dates may arrive as calendar days or as timestamps with an offset
DateInput = Union[date, datetime]


def _strip_markup(v):
    """Remove script tags and inline event handlers from free text"""
    if v is None or not isinstance(v, str):
        return v
    v = re.sub(r'<script[^>]*>.*?</script>', '', v, flags=re.IGNORECASE | re.DOTALL)
    v = re.sub(r'on\w+\s*=', '', v, flags=re.IGNORECASE)
    return v


# ================================
# Booking requests
# ================================

class BookingRequestCreate(BaseModel):
    listing_id: str = Field(..., min_length=1, max_length=36)
    check_in: DateInput
    check_out: DateInput
    guests: int = Field(default=1, ge=1, le=50)
    pets: bool = False
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator('message', mode='before')
    @classmethod
    def sanitize_message(cls, v):
        return _strip_markup(v)


class BookingRequestAlter(BaseModel):
    check_in: DateInput
    check_out: DateInput
    guests: Optional[int] = Field(None, ge=1, le=50)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator('message', mode='before')
    @classmethod
    def sanitize_message(cls, v):
        return _strip_markup(v)


class BookingRequestStatusUpdate(BaseModel):
    status: BookingRequestStatus


class BookingRequestFilter(BaseModel):
    """Query parameters for listing booking requests"""
    listing_id: Optional[str] = None
    status: Optional[BookingRequestStatus] = None
    take: int = Field(default=20, ge=1, le=100)
    skip: int = Field(default=0, ge=0)


class BookingRequestResponse(BaseModel):
    id: str
    listing_id: str
    guest_id: str
    check_in: date
    check_out: date
    guests: int
    pets: bool
    message: str = ""
    total_price: Decimal
    status: BookingRequestStatus
    alteration_of: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StatusChangeResponse(BaseModel):
    status: BookingRequestStatus


# ================================
# Bookings
# ================================

class BookingUpdate(BaseModel):
    check_in: DateInput
    check_out: DateInput


class BookingResponse(BaseModel):
    id: str
    guest_id: str
    listing_id: str
    booking_request_id: Optional[str] = None
    check_in: date
    check_out: date
    total_price: Decimal
    status: BookingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ================================
# Inventory calendar
# ================================

class InventoryDayUpdate(BaseModel):
    date: DateInput
    price: Optional[Decimal] = Field(None, ge=0)
    is_available: Optional[bool] = None


class InventoryUpdateRequest(BaseModel):
    days: List[InventoryDayUpdate] = Field(..., min_length=1, max_length=366)


class InventoryUpdateResponse(BaseModel):
    updated: int


class CalendarDay(BaseModel):
    date: date
    is_available: bool
    price: Decimal
    booking_id: Optional[str] = None
    has_row: bool


class NightlyPrice(BaseModel):
    date: date
    price: Decimal
    source: str


class QuoteResponse(BaseModel):
    listing_id: str
    check_in: date
    check_out: date
    nights: int
    currency: str
    total: Decimal
    nightly_prices: List[NightlyPrice] = []


# ================================
# Envelope
# ================================

class ErrorBody(BaseModel):
    code: str
    message: str
    category: str
    retryable: bool = False
    details: Optional[Dict[str, Any]] = None


class Envelope(BaseModel):
    """Body of every booking API response"""
    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorBody] = None
