"""
Inventory Calendar Model

Daily availability and price per listing.
A missing row means the day is open at no recorded price.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Numeric, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class InventoryDay(Base):
    """
    One calendar day of one listing.

    Invariant: booking_id set => is_available is False.
    A day can also be unavailable without a booking (host block).
    """
    __tablename__ = "listing_inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)

    listing_id = Column(String(36), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False)

    # Calendar day, no time component
    date = Column(Date, nullable=False)

    is_available = Column(Boolean, nullable=False, default=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    # Claim held by a booking
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="RESTRICT"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = relationship("Listing", back_populates="inventory")
    booking = relationship("Booking", back_populates="inventory_days")

    __table_args__ = (
        # One entry per listing per date; also guards concurrent lazy inserts
        UniqueConstraint('listing_id', 'date', name='uq_inventory_listing_date'),
        CheckConstraint('booking_id IS NULL OR is_available = false', name='ck_inventory_claimed_unavailable'),
        Index('ix_inventory_available', 'listing_id', 'is_available', 'date'),
        Index('ix_inventory_booking', 'booking_id'),
    )

    @property
    def is_claimed(self) -> bool:
        return self.booking_id is not None

    def __repr__(self):
        status = "available" if self.is_available else ("booked" if self.booking_id else "blocked")
        return f"<InventoryDay {self.listing_id} {self.date} {status}>"
