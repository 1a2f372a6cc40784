from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..schemas.booking import BookingResponse, BookingUpdate
from ..services.booking_service import BookingService
from ..services.errors import BookingNotFound
from ..services.notification_service import Notifier
from ..utils.dependencies import get_notifier_dependency, require_user_id
from ..utils.rate_limiter import limiter, get_rate_limit
from ..utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier_dependency)
) -> BookingService:
    return BookingService(db, notifier=notifier)


@router.get("")
@router.get("/")
async def list_listing_bookings(
    listing_id: str = Query(..., min_length=1),
    include_cancelled: bool = Query(False),
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service)
):
    """Bookings of a listing, for its host"""
    result = service.list_listing_bookings(listing_id, user_id, include_cancelled=include_cancelled)
    return envelope(result, BookingResponse)


@router.get("/{booking_id}")
@router.get("/{booking_id}/")
async def get_booking(
    booking_id: str,
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service)
):
    result = service.get_booking(booking_id, user_id)
    return envelope(result, BookingResponse, missing=BookingNotFound())


@router.patch("/{booking_id}")
@router.patch("/{booking_id}/")
@limiter.limit(get_rate_limit("booking_update"))
async def update_booking(
    request: Request,
    booking_id: str,
    payload: BookingUpdate,
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service)
):
    """Change the dates of an accepted booking; the host is emailed"""
    result = service.update_booking(
        booking_id,
        payload.check_in,
        payload.check_out,
        acting_user_id=user_id,
    )
    return envelope(result, BookingResponse)


@router.post("/{booking_id}/cancel")
@router.post("/{booking_id}/cancel/")
@limiter.limit(get_rate_limit("booking_update"))
async def cancel_booking(
    request: Request,
    booking_id: str,
    user_id: str = Depends(require_user_id),
    service: BookingService = Depends(get_booking_service)
):
    result = service.cancel_booking(booking_id, user_id)
    return envelope(result, BookingResponse)
