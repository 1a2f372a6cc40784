from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..database import get_db
from ..models.booking_request import BookingRequestStatus
from ..schemas.booking import (
    BookingRequestCreate, BookingRequestAlter, BookingRequestStatusUpdate,
    BookingRequestFilter, BookingRequestResponse, StatusChangeResponse
)
from ..services.booking_request_service import BookingRequestService
from ..services.errors import RequestNotFound
from ..services.notification_service import Notifier
from ..utils.dependencies import get_acting_user_id, get_notifier_dependency, require_user_id
from ..utils.rate_limiter import limiter, get_rate_limit
from ..utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/booking-requests", tags=["Booking Requests"])


def get_booking_request_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier_dependency)
) -> BookingRequestService:
    return BookingRequestService(db, notifier=notifier)


@router.post("")
@router.post("/")
@limiter.limit(get_rate_limit("booking_request_create"))
async def create_booking_request(
    request: Request,
    payload: BookingRequestCreate,
    user_id: Optional[str] = Depends(get_acting_user_id),
    service: BookingRequestService = Depends(get_booking_request_service)
):
    """Guest submits a request for a date range; the host is emailed"""
    result = service.create_booking_request(
        listing_id=payload.listing_id,
        guest_id=user_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        guests=payload.guests,
        pets=payload.pets,
        message=payload.message,
    )
    return envelope(result, BookingRequestResponse, status_code=201)


@router.get("")
@router.get("/")
async def list_booking_requests(
    listing_id: Optional[str] = Query(None),
    status: Optional[BookingRequestStatus] = Query(None),
    take: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    user_id: str = Depends(require_user_id),
    service: BookingRequestService = Depends(get_booking_request_service)
):
    filters = BookingRequestFilter(listing_id=listing_id, status=status, take=take, skip=skip)
    result = service.list_booking_requests(filters, user_id)
    return envelope(result, BookingRequestResponse)


@router.get("/{request_id}")
@router.get("/{request_id}/")
async def get_booking_request(
    request_id: str,
    user_id: str = Depends(require_user_id),
    service: BookingRequestService = Depends(get_booking_request_service)
):
    result = service.get_booking_request(request_id, user_id)
    return envelope(result, BookingRequestResponse, missing=RequestNotFound("Booking request not found"))


@router.patch("/{request_id}/status")
@router.patch("/{request_id}/status/")
@limiter.limit(get_rate_limit("booking_request_status"))
async def change_booking_request_status(
    request: Request,
    request_id: str,
    payload: BookingRequestStatusUpdate,
    user_id: str = Depends(require_user_id),
    service: BookingRequestService = Depends(get_booking_request_service)
):
    """
    Host accepts or rejects a request.

    Accepting claims the dates and creates the booking; rejecting an
    accepted request releases them again.
    """
    result = service.change_booking_request_status(request_id, payload.status, user_id)
    return envelope(result, StatusChangeResponse)


@router.post("/{request_id}/alter")
@router.post("/{request_id}/alter/")
@limiter.limit(get_rate_limit("booking_request_alter"))
async def alter_booking_request(
    request: Request,
    request_id: str,
    payload: BookingRequestAlter,
    user_id: str = Depends(require_user_id),
    service: BookingRequestService = Depends(get_booking_request_service)
):
    """Guest replaces a pending request with new dates"""
    result = service.alter_booking_request(
        request_id=request_id,
        guest_id=user_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        guests=payload.guests,
        message=payload.message,
    )
    return envelope(result, BookingRequestResponse, status_code=201)
