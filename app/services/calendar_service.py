"""
Listing calendar operations: host inventory edits, the per-day
availability view and stand-alone price quotes.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.listing import Listing
from ..utils.dates import DateLike, is_before, to_calendar_day
from ..utils.db_helpers import acquire_row_lock
from .availability import AvailabilityValidator
from .directory import ListingDirectory
from .errors import InvalidRange, ListingNotFound, ValidationFailed
from .inventory_service import InventoryService
from .pricing_engine import PricingCalculator, PriceQuote
from .results import operation_boundary

logger = logging.getLogger(__name__)

# Longest window the calendar view returns in one call
MAX_CALENDAR_DAYS = 366


class CalendarService:
    def __init__(self, db: Session):
        self.db = db
        self.listings = ListingDirectory(db)
        self.inventory = InventoryService(db)
        self.validator = AvailabilityValidator(db)
        self.pricing = PricingCalculator(db)

    @operation_boundary("edit_inventory")
    def edit_inventory(self, listing_id: str, acting_host_id: Optional[str], days: Iterable) -> int:
        """
        Set price and/or availability for individual days.

        `days` holds objects or dicts with date, price and is_available;
        price and is_available may be None to leave them unchanged.
        Returns count of days written.
        """
        listing = self.listings.get_owned_listing(listing_id, acting_host_id) if acting_host_id else None
        if listing is None:
            raise ListingNotFound("Listing not found or you do not have access to it")

        changes: Dict[date, dict] = {}
        for day in days:
            item = day if isinstance(day, dict) else day.model_dump()
            if item.get("date") is None:
                raise ValidationFailed("Every inventory entry needs a date")
            price = item.get("price")
            if price is not None and price < 0:
                raise ValidationFailed("Price cannot be negative", date=str(item["date"]))
            d = to_calendar_day(item["date"], listing.time_zone)
            changes[d] = {"price": price, "is_available": item.get("is_available")}

        if not changes:
            return 0

        # Same lock order as acceptance: listing row, then day rows
        locked = acquire_row_lock(self.db, Listing, Listing.id == listing.id)
        written = self.inventory.upsert_days(locked, changes)
        self.db.commit()
        return written

    @operation_boundary("get_calendar")
    def get_calendar(self, listing_id: str, start: DateLike, end: DateLike) -> List[dict]:
        listing = self.listings.get_listing(listing_id)
        if listing is None:
            raise ListingNotFound()

        if not is_before(start, end, listing.time_zone):
            raise InvalidRange()
        start_day = to_calendar_day(start, listing.time_zone)
        end_day = to_calendar_day(end, listing.time_zone)
        if (end_day - start_day).days > MAX_CALENDAR_DAYS:
            raise ValidationFailed(f"Calendar window cannot exceed {MAX_CALENDAR_DAYS} days")

        return self.inventory.get_availability(listing, start_day, end_day)

    @operation_boundary("quote")
    def quote(self, listing_id: str, check_in: DateLike, check_out: DateLike) -> PriceQuote:
        listing = self.listings.get_listing(listing_id)
        if listing is None:
            raise ListingNotFound()

        stay = self.validator.validate(listing, check_in, check_out)
        return self.pricing.quote(listing, stay.check_in, stay.check_out)
