"""
Inventory Calendar Tests

Tests cover:
- Claims and releases at the InventoryService level
- Host inventory edits (upsert, never touching booked days)
- Calendar view filling missing days as available
- Stand-alone quotes
"""

import pytest
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy.exc import IntegrityError

from app.models import Booking, InventoryDay
from app.services.booking_request_service import BookingRequestService
from app.services.calendar_service import CalendarService
from app.services.errors import DatesUnavailable
from app.services.inventory_service import InventoryService

from conftest import RecordingNotifier


JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)
JAN_4 = date(2024, 1, 4)


@pytest.fixture
def booking(db, listing, guest):
    """A bare booking row to claim days for"""
    b = Booking(
        guest_id=guest.id,
        listing_id=listing.id,
        check_in=JAN_1,
        check_out=JAN_3,
        total_price=Decimal("0"),
    )
    db.add(b)
    db.commit()
    return b


@pytest.fixture
def calendar(db):
    return CalendarService(db)


class TestClaimAndRelease:

    def test_claim_creates_missing_rows_at_listing_price(self, db, listing, booking, calendar_rows):
        count = InventoryService(db).claim_dates(listing, booking.id, JAN_1, JAN_3)
        db.commit()

        assert count == 2
        assert calendar_rows(listing) == [
            (JAN_1, False, Decimal("100.00"), booking.id),
            (JAN_2, False, Decimal("100.00"), booking.id),
        ]

    def test_claim_rejects_blocked_day(self, db, listing, booking, add_days):
        add_days(listing, {JAN_2: 100}, unavailable=[JAN_2])

        with pytest.raises(DatesUnavailable) as exc:
            InventoryService(db).claim_dates(listing, booking.id, JAN_1, JAN_3)

        assert exc.value.details == {"dates": ["2024-01-02"]}

    def test_concurrent_insert_surfaces_as_dates_unavailable(self, db, listing, booking, monkeypatch):
        """The unique (listing, date) constraint firing on flush"""
        service = InventoryService(db)

        def failing_flush(*args, **kwargs):
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(db, "flush", failing_flush)

        with pytest.raises(DatesUnavailable):
            service.claim_dates(listing, booking.id, JAN_1, JAN_3)

    def test_release_frees_only_that_booking(self, db, listing, booking, guest, calendar_rows):
        other = Booking(guest_id=guest.id, listing_id=listing.id, check_in=JAN_3, check_out=JAN_4)
        db.add(other)
        db.flush()
        service = InventoryService(db)
        service.claim_dates(listing, booking.id, JAN_1, JAN_3)
        service.claim_dates(listing, other.id, JAN_3, JAN_4)
        db.commit()

        released = service.release_booking(booking.id)
        db.commit()

        assert released == 2
        assert calendar_rows(listing) == [
            (JAN_1, True, Decimal("100.00"), None),
            (JAN_2, True, Decimal("100.00"), None),
            (JAN_3, False, Decimal("100.00"), other.id),
        ]

    def test_release_subset_of_dates(self, db, listing, booking, calendar_rows):
        service = InventoryService(db)
        service.claim_dates(listing, booking.id, JAN_1, JAN_3)

        assert service.release_booking(booking.id, only_dates=[JAN_2]) == 1
        db.commit()

        rows = calendar_rows(listing)
        assert rows[0][3] == booking.id
        assert rows[1][3] is None


class TestEditInventory:

    def test_upserts_prices_and_blocks(self, db, calendar, listing, host, add_days, calendar_rows):
        add_days(listing, {JAN_1: 100})

        result = calendar.edit_inventory(listing.id, host.id, [
            {"date": JAN_1, "price": Decimal("140"), "is_available": None},
            {"date": JAN_2, "price": None, "is_available": False},
        ])

        assert result.success
        assert result.data == 2
        assert calendar_rows(listing) == [
            (JAN_1, True, Decimal("140.00"), None),
            (JAN_2, False, Decimal("100.00"), None),
        ]

    def test_accepts_schema_objects(self, calendar, listing, host):
        day = SimpleNamespace(model_dump=lambda: {"date": JAN_3, "price": Decimal("80"), "is_available": True})
        assert calendar.edit_inventory(listing.id, host.id, [day]).data == 1

    def test_booked_days_cannot_be_edited(self, db, calendar, listing, guest, host, calendar_rows):
        requests = BookingRequestService(db, notifier=RecordingNotifier())
        request = requests.create_booking_request(listing.id, guest.id, JAN_1, JAN_3).data
        requests.accept(request.id, host.id)
        before = calendar_rows(listing)

        result = calendar.edit_inventory(listing.id, host.id, [
            {"date": JAN_2, "price": Decimal("1"), "is_available": True},
            {"date": JAN_3, "price": Decimal("1"), "is_available": True},
        ])

        assert result.error.code == "DATES_UNAVAILABLE"
        assert result.error.details == {"dates": ["2024-01-02"]}
        # Nothing from the batch was written
        assert calendar_rows(listing) == before

    def test_only_the_host_can_edit(self, calendar, listing, guest):
        result = calendar.edit_inventory(listing.id, guest.id, [{"date": JAN_1, "price": Decimal("1")}])
        assert result.error.code == "LISTING_NOT_FOUND"

    def test_negative_price_is_rejected(self, calendar, listing, host):
        result = calendar.edit_inventory(listing.id, host.id, [{"date": JAN_1, "price": Decimal("-5")}])
        assert result.error.code == "VALIDATION_FAILED"

    def test_blocked_day_stops_new_requests(self, db, calendar, listing, guest, host):
        calendar.edit_inventory(listing.id, host.id, [{"date": JAN_2, "is_available": False}])

        result = BookingRequestService(db, notifier=RecordingNotifier()).create_booking_request(
            listing.id, guest.id, JAN_1, JAN_3
        )
        assert result.error.code == "DATES_UNAVAILABLE"


class TestCalendarView:

    def test_missing_days_show_as_available_at_listing_price(self, calendar, listing, add_days):
        add_days(listing, {JAN_2: 130}, unavailable=[JAN_2])

        days = calendar.get_calendar(listing.id, JAN_1, JAN_4).data

        assert [(d["date"], d["is_available"], d["price"], d["has_row"]) for d in days] == [
            (JAN_1, True, Decimal("100.00"), False),
            (JAN_2, False, Decimal("130.00"), True),
            (JAN_3, True, Decimal("100.00"), False),
        ]

    def test_invalid_window(self, calendar, listing):
        assert calendar.get_calendar(listing.id, JAN_3, JAN_1).error.code == "INVALID_RANGE"

    def test_window_too_large(self, calendar, listing):
        result = calendar.get_calendar(listing.id, date(2024, 1, 1), date(2025, 6, 1))
        assert result.error.code == "VALIDATION_FAILED"

    def test_unknown_listing(self, calendar):
        assert calendar.get_calendar("nope", JAN_1, JAN_2).error.code == "LISTING_NOT_FOUND"


class TestQuote:

    def test_quote_matches_request_price(self, db, calendar, listing, add_days):
        add_days(listing, {JAN_1: 120, JAN_2: 120})

        quote = calendar.quote(listing.id, JAN_1, JAN_3).data

        assert quote.total == Decimal("240.00")
        assert db.query(InventoryDay).count() == 2

    def test_quote_validates_range(self, calendar, listing, add_days):
        add_days(listing, {JAN_1: 120}, unavailable=[JAN_1])
        assert calendar.quote(listing.id, JAN_1, JAN_2).error.code == "DATES_UNAVAILABLE"
        assert calendar.quote(listing.id, JAN_2, JAN_2).error.code == "INVALID_RANGE"
