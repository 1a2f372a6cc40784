"""
Booking Request Lifecycle

State machine for booking requests:

    PENDING  -> ACCEPTED   (host accepts: booking created, days claimed)
    PENDING  -> REJECTED   (host declines: nothing was claimed)
    ACCEPTED -> REJECTED   (host reverses: days released, booking deleted)
    PENDING  -> ALTERED    (guest alters: replaced by a new PENDING request)

Each transition runs in one transaction over the request, the booking
and the listing's inventory rows. Emails go out only after commit.
"""

import logging
import uuid
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.booking import Booking, BookingStatus
from ..models.booking_request import BookingRequest, BookingRequestStatus
from ..models.listing import Listing
from ..models.user import User
from ..schemas.booking import BookingRequestFilter
from ..utils.dates import DateLike
from ..utils.db_helpers import acquire_row_lock
from ..utils.logging_config import get_logger
from .availability import AvailabilityValidator, StayRange
from .directory import ListingDirectory, UserDirectory
from .errors import (
    GuestNotFound, InvalidTransition, ListingNotFound, ListingNotPublished,
    RequestNotFound, ValidationFailed
)
from .inventory_service import InventoryService
from .notification_service import Notifier, get_notifier, notify_safely
from .pricing_engine import PricingCalculator, PriceQuote
from .results import operation_boundary

logger = logging.getLogger(__name__)
events = get_logger(__name__)


# Transitions a host may request through change_booking_request_status
HOST_TRANSITIONS = {
    (BookingRequestStatus.PENDING, BookingRequestStatus.ACCEPTED),
    (BookingRequestStatus.PENDING, BookingRequestStatus.REJECTED),
    (BookingRequestStatus.ACCEPTED, BookingRequestStatus.REJECTED),
}


def assert_host_transition(current: BookingRequestStatus, target: BookingRequestStatus) -> None:
    if (current, target) not in HOST_TRANSITIONS:
        raise InvalidTransition(
            f"Cannot change booking request from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )


def parse_status(value: Union[str, BookingRequestStatus]) -> BookingRequestStatus:
    try:
        return BookingRequestStatus(value)
    except ValueError:
        raise InvalidTransition(f"Unknown booking request status: {value}")


class BookingRequestService:
    """
    Public surface of the booking request lifecycle.

    Every public method returns an OperationResult; acting users are
    always passed in explicitly.
    """

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or get_notifier()
        self.listings = ListingDirectory(db)
        self.users = UserDirectory(db)
        self.validator = AvailabilityValidator(db)
        self.pricing = PricingCalculator(db)
        self.inventory = InventoryService(db)

    # ================================
    # Create
    # ================================

    @operation_boundary("create_booking_request")
    def create_booking_request(
        self,
        listing_id: str,
        guest_id: Optional[str],
        check_in: DateLike,
        check_out: DateLike,
        guests: int = 1,
        pets: bool = False,
        message: Optional[str] = None
    ) -> BookingRequest:
        listing = self.listings.get_listing(listing_id)
        if listing is None or listing.owner is None:
            raise ListingNotFound()
        if not listing.published:
            raise ListingNotPublished()

        guest = self.users.get_user(guest_id)
        if guest is None:
            raise GuestNotFound()

        if guests is None or guests < 1:
            raise ValidationFailed("At least one guest is required")

        stay = self.validator.validate(listing, check_in, check_out)
        quote = self.pricing.quote(listing, stay.check_in, stay.check_out)

        booking_request = BookingRequest(
            listing_id=listing.id,
            guest_id=guest.id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests=guests,
            pets=bool(pets),
            message=message or "",
            total_price=quote.total,
            status=BookingRequestStatus.PENDING.value,
        )
        self.db.add(booking_request)
        notice = self._request_notice(listing, guest, stay, guests, quote)
        self.db.commit()
        self.db.refresh(booking_request)

        events.request_created(booking_request.id, listing_id, quote.total, stay.nights)
        self._notify_host_of_request(notice)
        return booking_request

    # ================================
    # Reads
    # ================================

    @operation_boundary("get_booking_request")
    def get_booking_request(self, request_id: str, requesting_user_id: Optional[str]) -> Optional[BookingRequest]:
        """The request if the caller is its guest or the listing's host, else None."""
        if not requesting_user_id:
            return None

        booking_request = self.db.query(BookingRequest).filter(
            BookingRequest.id == request_id
        ).first()
        if booking_request is None:
            return None

        if requesting_user_id not in (booking_request.guest_id, booking_request.listing.owner_id):
            logger.info(f"User {requesting_user_id} denied read of booking request {request_id}")
            return None

        return booking_request

    @operation_boundary("list_booking_requests")
    def list_booking_requests(
        self,
        filters: BookingRequestFilter,
        requesting_user_id: Optional[str]
    ) -> List[BookingRequest]:
        """Requests the caller is guest of or hosts, newest first."""
        if not requesting_user_id:
            return []

        query = self.db.query(BookingRequest).join(
            Listing, Listing.id == BookingRequest.listing_id
        ).filter(
            or_(
                BookingRequest.guest_id == requesting_user_id,
                Listing.owner_id == requesting_user_id,
            )
        )

        if filters.listing_id:
            query = query.filter(BookingRequest.listing_id == filters.listing_id)
        if filters.status:
            query = query.filter(BookingRequest.status == BookingRequestStatus(filters.status).value)

        return query.order_by(
            BookingRequest.created_at.desc(),
            BookingRequest.id
        ).offset(filters.skip).limit(filters.take).all()

    # ================================
    # Host transitions
    # ================================

    @operation_boundary("change_booking_request_status")
    def change_booking_request_status(
        self,
        request_id: str,
        new_status: Union[str, BookingRequestStatus],
        acting_host_id: Optional[str]
    ) -> dict:
        target = parse_status(new_status)
        booking_request = self._load_for_host(request_id, acting_host_id)
        current = BookingRequestStatus(booking_request.status)
        assert_host_transition(current, target)

        if target == BookingRequestStatus.ACCEPTED:
            booking_id = self._accept(booking_request)
        else:
            booking_id = self._reject(booking_request, current)

        notice = self._decision_notice(booking_request, target)
        self.db.commit()

        events.request_status_changed(request_id, current.value, target.value, booking_id)
        self._notify_guest_of_decision(notice)
        return {"status": target.value}

    def accept(self, request_id: str, acting_host_id: Optional[str]):
        return self.change_booking_request_status(request_id, BookingRequestStatus.ACCEPTED, acting_host_id)

    def reject(self, request_id: str, acting_host_id: Optional[str]):
        return self.change_booking_request_status(request_id, BookingRequestStatus.REJECTED, acting_host_id)

    def _load_for_host(self, request_id: str, acting_host_id: Optional[str]) -> BookingRequest:
        """Lock the request; hide it from anyone but the listing's host."""
        booking_request = acquire_row_lock(
            self.db, BookingRequest, BookingRequest.id == request_id
        )
        if (
            booking_request is None
            or not acting_host_id
            or booking_request.listing is None
            or booking_request.listing.owner_id != acting_host_id
        ):
            raise RequestNotFound()
        return booking_request

    def _accept(self, booking_request: BookingRequest) -> str:
        # Serializes claims per listing; rows in range are locked again below
        listing = acquire_row_lock(self.db, Listing, Listing.id == booking_request.listing_id)
        if listing is None:
            raise ListingNotFound()

        booking = Booking(
            id=str(uuid.uuid4()),
            guest_id=booking_request.guest_id,
            listing_id=listing.id,
            booking_request_id=booking_request.id,
            check_in=booking_request.check_in,
            check_out=booking_request.check_out,
            total_price=Decimal("0"),
            status=BookingStatus.ACTIVE.value,
        )
        self.db.add(booking)
        self.db.flush()

        # Re-validates availability under lock; raises DatesUnavailable
        self.inventory.claim_dates(listing, booking.id, booking.check_in, booking.check_out)

        booking.total_price = self.pricing.nightly_rate_total(listing, booking.check_in, booking.check_out)
        booking_request.status = BookingRequestStatus.ACCEPTED.value
        self.db.flush()
        return booking.id

    def _reject(self, booking_request: BookingRequest, current: BookingRequestStatus) -> Optional[str]:
        booking_id = None
        if current == BookingRequestStatus.ACCEPTED:
            booking = acquire_row_lock(
                self.db, Booking, Booking.booking_request_id == booking_request.id
            )
            if booking is not None:
                booking_id = booking.id
                self.inventory.release_booking(booking.id)
                self.db.delete(booking)
            else:
                logger.warning(f"Accepted booking request {booking_request.id} has no booking to release")

        booking_request.status = BookingRequestStatus.REJECTED.value
        self.db.flush()
        return booking_id

    # ================================
    # Guest alteration of a pending request
    # ================================

    @operation_boundary("alter_booking_request")
    def alter_booking_request(
        self,
        request_id: str,
        guest_id: Optional[str],
        check_in: DateLike,
        check_out: DateLike,
        guests: Optional[int] = None,
        message: Optional[str] = None
    ) -> BookingRequest:
        """
        Replace a pending request with a new one for different dates.

        The new request points back at the original through alteration_of
        and the original moves to ALTERED.
        """
        original = acquire_row_lock(self.db, BookingRequest, BookingRequest.id == request_id)
        if original is None or not guest_id or original.guest_id != guest_id:
            raise RequestNotFound("Original booking request not found")

        if original.status != BookingRequestStatus.PENDING.value:
            raise InvalidTransition("Cannot alter a booking that is not pending")

        listing = original.listing
        guest_count = guests if guests is not None else original.guests
        if guest_count < 1:
            raise ValidationFailed("At least one guest is required")

        stay = self.validator.validate(listing, check_in, check_out)
        quote = self.pricing.quote(listing, stay.check_in, stay.check_out)

        altered = BookingRequest(
            listing_id=original.listing_id,
            guest_id=original.guest_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests=guest_count,
            pets=original.pets,
            message=message if message is not None else original.message,
            total_price=quote.total,
            status=BookingRequestStatus.PENDING.value,
            alteration_of=original.id,
        )
        self.db.add(altered)
        original.status = BookingRequestStatus.ALTERED.value
        listing_id = listing.id
        notice = self._request_notice(listing, original.guest, stay, guest_count, quote)
        self.db.commit()
        self.db.refresh(altered)

        events.request_status_changed(
            request_id, BookingRequestStatus.PENDING.value, BookingRequestStatus.ALTERED.value
        )
        events.request_created(altered.id, listing_id, quote.total, stay.nights)
        self._notify_host_of_request(notice)
        return altered

    # ================================
    # Notifications
    # ================================
    # Recipients and email content are resolved before commit; only the
    # best-effort send runs afterwards.

    def _request_notice(
        self,
        listing: Listing,
        guest: User,
        stay: StayRange,
        guests: int,
        quote: PriceQuote
    ) -> Optional[dict]:
        host_email = self.users.contact_email(listing.owner)
        if not host_email:
            logger.info(f"Host of listing {listing.id} has no email address, skipping notification")
            return None

        return {
            "host_email": host_email,
            "guest_name": guest.display_name if guest else "",
            "listing_title": listing.title,
            "check_in": stay.check_in,
            "check_out": stay.check_out,
            "guests": guests,
            "total_price": quote.total,
            "currency": quote.currency,
            "listing_id": listing.id,
        }

    def _decision_notice(self, booking_request: BookingRequest, status: BookingRequestStatus) -> Optional[dict]:
        guest = self.users.get_user(booking_request.guest_id)
        guest_email = self.users.contact_email(guest)
        if not guest_email:
            logger.info(f"Guest {booking_request.guest_id} has no email address, skipping notification")
            return None

        return {
            "guest_email": guest_email,
            "guest_name": guest.display_name,
            "listing_title": booking_request.listing.title,
            "check_in": booking_request.check_in,
            "check_out": booking_request.check_out,
            "status": status.value,
        }

    def _notify_host_of_request(self, notice: Optional[dict]) -> None:
        if notice is None:
            return
        notify_safely(
            "booking request",
            lambda: self.notifier.send_booking_request_created(**notice),
        )

    def _notify_guest_of_decision(self, notice: Optional[dict]) -> None:
        if notice is None:
            return
        notify_safely(
            "booking decision",
            lambda: self.notifier.send_booking_request_decision(**notice),
        )
