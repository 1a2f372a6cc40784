"""
Pricing Engine Service

Prices a stay from the listing's inventory calendar.

Two totals exist and are intentionally kept apart:
1. Quote (request time): sum of the per-day inventory prices in the range.
   Days without an inventory row add 0, or the listing's nightly rate
   when fallback is enabled.
2. Nightly-rate total (acceptance time): nights x listing.price_per_night,
   ignoring per-day overrides.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..config import settings
from ..models.listing import Listing
from ..utils.dates import date_range, nights_between
from .inventory_service import InventoryService

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize any numeric to 2 decimal places"""
    return Decimal(str(value if value is not None else 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class DailyPrice:
    """Price contribution of a single night"""
    date: date
    price: Decimal
    source: str  # "inventory", "listing_default", "missing"


@dataclass
class PriceQuote:
    """Computed price for a stay"""
    listing_id: str
    check_in: date
    check_out: date
    nights: int
    currency: str
    total: Decimal
    nightly_prices: List[DailyPrice] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "listing_id": self.listing_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "currency": self.currency,
            "total": self.total,
            "nightly_prices": [
                {"date": p.date.isoformat(), "price": p.price, "source": p.source}
                for p in self.nightly_prices
            ],
        }


class PricingCalculator:
    """
    Pure read-side price computation; never writes.

    The range must already have passed the availability validator.
    """

    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def quote(
        self,
        listing: Listing,
        check_in: date,
        check_out: date,
        fallback: Optional[bool] = None
    ) -> PriceQuote:
        if fallback is None:
            fallback = settings.pricing_fallback_to_listing_price

        days = self.inventory.get_days(listing.id, check_in, check_out)
        default_price = to_money(listing.price_per_night)

        nightly = []
        for d in date_range(check_in, check_out):
            entry = days.get(d)
            if entry is not None:
                nightly.append(DailyPrice(date=d, price=to_money(entry.price), source="inventory"))
            elif fallback:
                nightly.append(DailyPrice(date=d, price=default_price, source="listing_default"))
            else:
                nightly.append(DailyPrice(date=d, price=Decimal("0.00"), source="missing"))

        total = to_money(sum((p.price for p in nightly), Decimal("0")))

        return PriceQuote(
            listing_id=listing.id,
            check_in=check_in,
            check_out=check_out,
            nights=len(nightly),
            currency=listing.currency,
            total=total,
            nightly_prices=nightly,
        )

    @staticmethod
    def nightly_rate_total(listing: Listing, check_in: date, check_out: date) -> Decimal:
        """nights x the listing's current nightly rate"""
        nights = nights_between(check_in, check_out)
        return to_money(Decimal(nights) * to_money(listing.price_per_night))
