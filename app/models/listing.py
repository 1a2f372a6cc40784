"""
Listing Model

Listings are managed by the listing service. The booking engine reads
the owner, nightly rate, currency and time zone, and owns nothing here
except the inventory rows hanging off each listing.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Numeric, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)

    price_per_night = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")

    # HH:MM 24-hour, listing-local
    check_in_time = Column(String(5), default="15:00")
    check_out_time = Column(String(5), default="11:00")
    time_zone = Column(String(64), nullable=False, default="UTC")

    maximum_guests = Column(Integer, default=2)
    allow_pets = Column(Boolean, default=False)
    published = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="listings")
    inventory = relationship("InventoryDay", back_populates="listing", passive_deletes=True)
    booking_requests = relationship("BookingRequest", back_populates="listing")

    __table_args__ = (
        Index("ix_listings_owner", "owner_id"),
    )

    def __repr__(self):
        return f"<Listing {self.id} {self.title}>"
