"""
Listing and user lookups.

Listings and users belong to other services; the engine reads them
through these two small classes so that the lookup contract stays in
one place.
"""

from typing import Optional
from sqlalchemy.orm import Session

from ..models.listing import Listing
from ..models.user import User


class ListingDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_listing(self, listing_id: str) -> Optional[Listing]:
        return self.db.query(Listing).filter(Listing.id == listing_id).first()

    def get_owned_listing(self, listing_id: str, owner_id: str) -> Optional[Listing]:
        """Listing only if `owner_id` hosts it"""
        return self.db.query(Listing).filter(
            Listing.id == listing_id,
            Listing.owner_id == owner_id
        ).first()


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def contact_email(user: Optional[User]) -> Optional[str]:
        """Primary address, falling back to the first one on file"""
        if user is None or not user.email_addresses:
            return None
        for address in user.email_addresses:
            if address.is_primary:
                return address.email_address
        return user.email_addresses[0].email_address
