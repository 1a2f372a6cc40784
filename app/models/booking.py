import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Numeric, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class Booking(Base):
    """
    An accepted stay.

    Created only by accepting a booking request and deleted only by
    rejecting that request afterwards. While ACTIVE, every day in
    [check_in, check_out) has an inventory row claimed by it.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    guest_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    listing_id = Column(String(36), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    booking_request_id = Column(
        String(36),
        ForeignKey("booking_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    total_price = Column(Numeric(10, 2), default=0)
    status = Column(String(20), nullable=False, default=BookingStatus.ACTIVE.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guest = relationship("User", foreign_keys=[guest_id])
    listing = relationship("Listing")
    booking_request = relationship("BookingRequest", back_populates="bookings")
    inventory_days = relationship("InventoryDay", back_populates="booking")

    __table_args__ = (
        Index("ix_booking_listing_dates", "listing_id", "check_in", "check_out"),
        Index("ix_booking_request", "booking_request_id"),
        Index("ix_booking_guest", "guest_id"),
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __repr__(self):
        return f"<Booking {self.id} {self.check_in}..{self.check_out} {self.status}>"
