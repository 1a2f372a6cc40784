"""
User Model

Users and their email addresses are owned by the account service;
the booking engine only reads them to resolve guests and hosts.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from ..database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    email_addresses = relationship(
        "EmailAddress",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="EmailAddress.created_at",
    )
    listings = relationship("Listing", back_populates="owner")

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<User {self.id} {self.display_name}>"


class EmailAddress(Base):
    __tablename__ = "email_addresses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email_address = Column(String(255), nullable=False, unique=True)
    is_primary = Column(Boolean, default=False)
    is_verified = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="email_addresses")

    __table_args__ = (
        Index("ix_email_addresses_user", "user_id"),
    )

    def __repr__(self):
        return f"<EmailAddress {self.email_address}>"
