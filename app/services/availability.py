"""
Availability Validator

Checks a requested stay against the inventory calendar:

1. check_in must be before check_out (raw values)       -> InvalidRange
2. at least one calendar day between them               -> BelowMinimumStay
3. no inventory row in range marked unavailable         -> DatesUnavailable

Only whole calendar days matter. Time of day is dropped after the
values are moved into the listing's time zone, so 08:00 -> 18:00 on the
same day is below the minimum stay while 22:00 -> 08:00 the next day is
one night.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from ..models.listing import Listing
from ..utils.dates import DateLike, to_calendar_day, is_before, nights_between
from .errors import InvalidRange, BelowMinimumStay, DatesUnavailable
from .inventory_service import InventoryService


@dataclass(frozen=True)
class StayRange:
    """Validated half-open range [check_in, check_out) of calendar days"""
    check_in: date
    check_out: date

    @property
    def nights(self) -> int:
        return nights_between(self.check_in, self.check_out)


def normalize_range(listing: Listing, check_in: DateLike, check_out: DateLike) -> StayRange:
    """Shape checks only, no calendar lookups."""
    if not is_before(check_in, check_out, listing.time_zone):
        raise InvalidRange()

    stay = StayRange(
        check_in=to_calendar_day(check_in, listing.time_zone),
        check_out=to_calendar_day(check_out, listing.time_zone),
    )
    if stay.nights < 1:
        raise BelowMinimumStay()
    return stay


class AvailabilityValidator:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def validate(self, listing: Listing, check_in: DateLike, check_out: DateLike) -> StayRange:
        stay = normalize_range(listing, check_in, check_out)

        unavailable = self.inventory.find_unavailable(listing.id, stay.check_in, stay.check_out)
        if unavailable:
            raise DatesUnavailable(dates=[d.isoformat() for d in unavailable])

        return stay
