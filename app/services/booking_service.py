"""
Booking Service

Operations on accepted bookings:
- Date changes (alteration) with optional calendar reconciliation
- Cancellation, releasing the claimed days
- Guest/host scoped reads
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..models.booking import Booking, BookingStatus
from ..models.listing import Listing
from ..utils.dates import DateLike, is_before, to_calendar_day
from ..utils.db_helpers import acquire_row_lock
from ..utils.logging_config import get_logger
from .directory import ListingDirectory, UserDirectory
from .errors import BookingNotFound, InvalidDateRange, InvalidTransition, ListingNotFound
from .inventory_service import InventoryService
from .notification_service import Notifier, get_notifier, notify_safely
from .results import operation_boundary

logger = logging.getLogger(__name__)
events = get_logger(__name__)


def _is_party(booking: Booking, user_id: Optional[str]) -> bool:
    return bool(user_id) and user_id in (booking.guest_id, booking.listing.owner_id)


class BookingService:
    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or get_notifier()
        self.listings = ListingDirectory(db)
        self.users = UserDirectory(db)
        self.inventory = InventoryService(db)

    # ================================
    # Alteration
    # ================================

    @operation_boundary("update_booking")
    def update_booking(
        self,
        booking_id: str,
        check_in: DateLike,
        check_out: DateLike,
        acting_user_id: Optional[str] = None,
        reconcile_inventory: Optional[bool] = None
    ) -> Booking:
        """
        Move a booking to new dates.

        By default only the booking row changes and the calendar keeps the
        old claim. With reconcile_inventory (or ALTERATION_RECONCILES_INVENTORY)
        the new range is checked against other claims and the claim moves
        with the booking.
        """
        if reconcile_inventory is None:
            reconcile_inventory = settings.alteration_reconciles_inventory

        booking = acquire_row_lock(self.db, Booking, Booking.id == booking_id)
        if booking is None:
            raise BookingNotFound()
        if acting_user_id is not None and not _is_party(booking, acting_user_id):
            raise BookingNotFound()
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidTransition("Cannot update a cancelled booking")

        listing = booking.listing
        if not is_before(check_in, check_out, listing.time_zone):
            raise InvalidDateRange()
        new_check_in = to_calendar_day(check_in, listing.time_zone)
        new_check_out = to_calendar_day(check_out, listing.time_zone)
        if new_check_out <= new_check_in:
            raise InvalidDateRange()

        old_check_in, old_check_out = booking.check_in, booking.check_out

        if reconcile_inventory:
            locked_listing = acquire_row_lock(self.db, Listing, Listing.id == listing.id)
            self.inventory.move_booking(
                locked_listing, booking.id,
                old_check_in, old_check_out,
                new_check_in, new_check_out,
            )

        booking.check_in = new_check_in
        booking.check_out = new_check_out
        notice = self._host_notice(booking, "modified")
        self.db.commit()
        self.db.refresh(booking)

        events.booking_altered(booking_id, new_check_in, new_check_out, "modified")
        self._send_alteration(notice)
        return booking

    # ================================
    # Cancellation
    # ================================

    @operation_boundary("cancel_booking")
    def cancel_booking(self, booking_id: str, acting_user_id: Optional[str]) -> Booking:
        booking = acquire_row_lock(self.db, Booking, Booking.id == booking_id)
        if booking is None or not _is_party(booking, acting_user_id):
            raise BookingNotFound()
        if booking.status == BookingStatus.CANCELLED.value:
            raise InvalidTransition("Booking is already cancelled")

        released = self.inventory.release_booking(booking.id)
        booking.status = BookingStatus.CANCELLED.value
        notice = self._guest_notice(booking, "cancelled")
        check_in, check_out = booking.check_in, booking.check_out
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking_id} cancelled by {acting_user_id}, {released} days released")
        events.booking_altered(booking_id, check_in, check_out, "cancelled")
        self._send_alteration(notice)
        return booking

    # ================================
    # Reads
    # ================================

    @operation_boundary("get_booking")
    def get_booking(self, booking_id: str, requesting_user_id: Optional[str]) -> Optional[Booking]:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if booking is None or not _is_party(booking, requesting_user_id):
            return None
        return booking

    @operation_boundary("list_listing_bookings")
    def list_listing_bookings(
        self,
        listing_id: str,
        acting_host_id: Optional[str],
        include_cancelled: bool = False
    ) -> List[Booking]:
        listing = self.listings.get_owned_listing(listing_id, acting_host_id) if acting_host_id else None
        if listing is None:
            raise ListingNotFound("Listing not found or you do not have access to it")

        query = self.db.query(Booking).filter(Booking.listing_id == listing.id)
        if not include_cancelled:
            query = query.filter(Booking.status == BookingStatus.ACTIVE.value)
        return query.order_by(Booking.check_in, Booking.id).all()

    # ================================
    # Notifications
    # ================================
    # Resolved before commit; only the send runs afterwards.

    def _host_notice(self, booking: Booking, alteration_type: str) -> Optional[dict]:
        listing = booking.listing
        host_email = self.users.contact_email(listing.owner)
        if not host_email:
            logger.warning(f"Host of listing {listing.id} has no email address, alteration not sent")
            return None
        return self._alteration_notice(host_email, booking, alteration_type)

    def _guest_notice(self, booking: Booking, alteration_type: str) -> Optional[dict]:
        guest_email = self.users.contact_email(booking.guest)
        if not guest_email:
            logger.info(f"Guest {booking.guest_id} has no email address, skipping notification")
            return None
        return self._alteration_notice(guest_email, booking, alteration_type)

    @staticmethod
    def _alteration_notice(recipient: str, booking: Booking, alteration_type: str) -> dict:
        return {
            "recipient_email": recipient,
            "guest_name": booking.guest.display_name if booking.guest else "",
            "listing_title": booking.listing.title,
            "start_date": booking.check_in,
            "end_date": booking.check_out,
            "alteration_type": alteration_type,
        }

    def _send_alteration(self, notice: Optional[dict]) -> None:
        if notice is None:
            return
        notify_safely(
            f"booking {notice['alteration_type']}",
            lambda: self.notifier.send_booking_alteration(**notice),
        )
