from datetime import date
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..schemas.booking import (
    CalendarDay, InventoryUpdateRequest, InventoryUpdateResponse, QuoteResponse
)
from ..services.calendar_service import CalendarService
from ..services.results import OperationResult
from ..utils.dependencies import require_user_id
from ..utils.rate_limiter import limiter, get_rate_limit
from ..utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/listings", tags=["Listing Calendar"])


def get_calendar_service(db: Session = Depends(get_db)) -> CalendarService:
    return CalendarService(db)


@router.get("/{listing_id}/calendar")
@router.get("/{listing_id}/calendar/")
@limiter.limit(get_rate_limit("calendar"))
async def get_calendar(
    request: Request,
    listing_id: str,
    start: date = Query(..., description="First day (inclusive)"),
    end: date = Query(..., description="Last day (exclusive)"),
    service: CalendarService = Depends(get_calendar_service)
):
    """Per-day availability and price; days without a row show as open"""
    result = service.get_calendar(listing_id, start, end)
    return envelope(result, CalendarDay)


@router.put("/{listing_id}/inventory")
@router.put("/{listing_id}/inventory/")
@limiter.limit(get_rate_limit("inventory_update"))
async def update_inventory(
    request: Request,
    listing_id: str,
    payload: InventoryUpdateRequest,
    user_id: str = Depends(require_user_id),
    service: CalendarService = Depends(get_calendar_service)
):
    """Host sets prices or blocks days. Booked days cannot be edited."""
    result = service.edit_inventory(listing_id, user_id, payload.days)
    if result.success:
        result = OperationResult.ok({"updated": result.data})
    return envelope(result, InventoryUpdateResponse)


@router.get("/{listing_id}/quote")
@router.get("/{listing_id}/quote/")
@limiter.limit(get_rate_limit("quote"))
async def get_quote(
    request: Request,
    listing_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    service: CalendarService = Depends(get_calendar_service)
):
    result = service.quote(listing_id, check_in, check_out)
    if result.success:
        result = OperationResult.ok(result.data.to_dict())
    return envelope(result, QuoteResponse)
