"""
Inventory Service

Manages the daily availability calendar of listings.
Accept and reject are the only lifecycle writers of is_available/booking_id;
they go through claim_dates / release_booking here.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from ..models.inventory_calendar import InventoryDay
from ..models.listing import Listing
from ..utils.dates import date_range
from ..utils.db_helpers import lock_rows
from .errors import DatesUnavailable

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Service for the listing inventory calendar.

    Key responsibilities:
    - Read days in a range (absence means available)
    - Claim days for a booking, re-checking availability under lock
    - Release the days held by a booking
    - Host edits of price and availability
    """

    def __init__(self, db: Session):
        self.db = db

    def get_days(self, listing_id: str, start: date, end: date) -> Dict[date, InventoryDay]:
        """Existing rows in [start, end), keyed by date."""
        entries = self.db.query(InventoryDay).filter(
            InventoryDay.listing_id == listing_id,
            InventoryDay.date >= start,
            InventoryDay.date < end
        ).order_by(InventoryDay.date).all()
        return {e.date: e for e in entries}

    def find_unavailable(self, listing_id: str, start: date, end: date) -> List[date]:
        """Dates in [start, end) that have a row marked unavailable."""
        rows = self.db.query(InventoryDay.date).filter(
            InventoryDay.listing_id == listing_id,
            InventoryDay.date >= start,
            InventoryDay.date < end,
            InventoryDay.is_available == False  # noqa: E712
        ).order_by(InventoryDay.date).all()
        return [r[0] for r in rows]

    def lock_days(self, listing_id: str, start: date, end: date) -> Dict[date, InventoryDay]:
        """Same as get_days but holds row locks until the transaction ends."""
        entries = lock_rows(
            self.db,
            InventoryDay,
            InventoryDay.listing_id == listing_id,
            InventoryDay.date >= start,
            InventoryDay.date < end,
            order_by=InventoryDay.date,
        )
        return {e.date: e for e in entries}

    def claim_dates(
        self,
        listing: Listing,
        booking_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None
    ) -> int:
        """
        Mark every day in [check_in, check_out) as booked by booking_id.

        Existing rows are re-checked under lock; missing rows are created
        at the listing's nightly price. Days already held by
        exclude_booking_id count as free (used when moving a booking).
        Returns count of days claimed.
        """
        existing = self.lock_days(listing.id, check_in, check_out)

        taken = [
            d for d, entry in existing.items()
            if not entry.is_available and entry.booking_id != (exclude_booking_id or booking_id)
        ]
        if taken:
            raise DatesUnavailable(
                f"Date {taken[0].isoformat()} is not available",
                dates=[d.isoformat() for d in taken],
            )

        count = 0
        for d in date_range(check_in, check_out):
            entry = existing.get(d)
            if entry is None:
                entry = InventoryDay(
                    listing_id=listing.id,
                    date=d,
                    price=listing.price_per_night,
                )
                self.db.add(entry)
            entry.is_available = False
            entry.booking_id = booking_id
            count += 1

        try:
            self.db.flush()
        except IntegrityError as e:
            # A concurrent transaction inserted one of the missing days first
            logger.warning(f"Inventory insert conflict on listing {listing.id}: {e.orig}")
            raise DatesUnavailable("One or more dates were claimed concurrently")

        logger.info(f"Claimed {count} days on listing {listing.id} for booking {booking_id}")
        return count

    def release_booking(self, booking_id: str, only_dates: Optional[Iterable[date]] = None) -> int:
        """
        Free every day claimed by booking_id (optionally only some dates).
        Returns count of days freed.
        """
        entries = lock_rows(
            self.db,
            InventoryDay,
            InventoryDay.booking_id == booking_id,
            order_by=InventoryDay.date,
        )
        if only_dates is not None:
            wanted = set(only_dates)
            entries = [e for e in entries if e.date in wanted]

        for entry in entries:
            entry.is_available = True
            entry.booking_id = None

        self.db.flush()
        logger.info(f"Released {len(entries)} days held by booking {booking_id}")
        return len(entries)

    def move_booking(
        self,
        listing: Listing,
        booking_id: str,
        old_check_in: date,
        old_check_out: date,
        new_check_in: date,
        new_check_out: date
    ) -> dict:
        """
        Move a booking's claim to a new range with diff logic.

        Days only in the old range are freed, days only in the new range
        are claimed. Returns dict with counts of dates_freed, dates_booked.
        """
        old_dates = set(date_range(old_check_in, old_check_out))
        new_dates = set(date_range(new_check_in, new_check_out))

        result = {"dates_freed": 0, "dates_booked": 0}

        # Validate the whole new range before touching anything
        self.claim_dates(listing, booking_id, new_check_in, new_check_out, exclude_booking_id=booking_id)
        result["dates_booked"] = len(new_dates - old_dates)

        dates_to_free = old_dates - new_dates
        if dates_to_free:
            result["dates_freed"] = self.release_booking(booking_id, only_dates=dates_to_free)

        logger.info(
            f"Moved booking {booking_id}: "
            f"freed={result['dates_freed']}, booked={result['dates_booked']}"
        )
        return result

    def upsert_days(self, listing: Listing, changes: Dict[date, dict]) -> int:
        """
        Apply host edits: {date: {"price": Decimal|None, "is_available": bool|None}}.

        Claimed days cannot be edited. Rows are created when missing and
        never deleted. Returns count of days written.
        """
        if not changes:
            return 0

        start, end = min(changes), max(changes)
        existing = self.lock_days(listing.id, start, end + timedelta(days=1))

        claimed = sorted(d for d in changes if d in existing and existing[d].is_claimed)
        if claimed:
            raise DatesUnavailable(
                "Booked dates cannot be edited",
                dates=[d.isoformat() for d in claimed],
            )

        for d, change in sorted(changes.items()):
            entry = existing.get(d)
            if entry is None:
                entry = InventoryDay(
                    listing_id=listing.id,
                    date=d,
                    price=listing.price_per_night,
                    is_available=True,
                )
                self.db.add(entry)
            if change.get("price") is not None:
                entry.price = Decimal(str(change["price"]))
            if change.get("is_available") is not None:
                entry.is_available = bool(change["is_available"])

        try:
            self.db.flush()
        except IntegrityError:
            raise DatesUnavailable("Inventory was modified concurrently, please retry")

        logger.info(f"Updated {len(changes)} inventory days on listing {listing.id}")
        return len(changes)

    def get_availability(self, listing: Listing, start_date: date, end_date: date) -> List[dict]:
        """
        Per-day view of [start_date, end_date).
        Missing rows are filled in as available at the listing price.
        """
        entry_map = self.get_days(listing.id, start_date, end_date)

        result = []
        for current in date_range(start_date, end_date):
            e = entry_map.get(current)
            if e is not None:
                result.append({
                    "date": current,
                    "is_available": e.is_available,
                    "price": Decimal(str(e.price)),
                    "booking_id": e.booking_id,
                    "has_row": True,
                })
            else:
                result.append({
                    "date": current,
                    "is_available": True,
                    "price": Decimal(str(listing.price_per_night)),
                    "booking_id": None,
                    "has_row": False,
                })
        return result
