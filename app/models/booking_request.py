"""
Booking Request Model

A guest's request for a date range on a listing. Its status is only
changed by the booking request lifecycle service.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Integer, Boolean, Numeric, Text, ForeignKey, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    # Superseded by a guest alteration
    ALTERED = "ALTERED"


class BookingRequest(Base):
    __tablename__ = "booking_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    listing_id = Column(String(36), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)
    guest_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    check_in = Column(Date, nullable=False)
    # Exclusive end
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    pets = Column(Boolean, nullable=False, default=False)
    message = Column(Text, nullable=False, default="")

    # Quote at request time (sum of inventory prices)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=BookingRequestStatus.PENDING.value)

    # Non-owning back-reference to the request this one replaces
    alteration_of = Column(
        String(36),
        ForeignKey("booking_requests.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = relationship("Listing", back_populates="booking_requests")
    guest = relationship("User", foreign_keys=[guest_id])
    bookings = relationship("Booking", back_populates="booking_request")
    original_request = relationship("BookingRequest", remote_side=[id], foreign_keys=[alteration_of])

    __table_args__ = (
        CheckConstraint("check_in < check_out", name="ck_booking_request_range"),
        Index("ix_booking_request_listing_status", "listing_id", "status"),
        Index("ix_booking_request_guest", "guest_id"),
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def __repr__(self):
        return f"<BookingRequest {self.id} {self.check_in}..{self.check_out} {self.status}>"
