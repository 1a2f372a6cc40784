"""
Tests for the Pricing Engine

These tests verify:
- Request-time quote as the sum of per-day inventory prices
- Missing days contributing 0 (or the nightly rate with fallback)
- Acceptance-time total as nights x nightly rate
- Money rounding
"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from app.services.pricing_engine import PricingCalculator, to_money


JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)
JAN_4 = date(2024, 1, 4)


class TestMoneyHelpers:
    """Unit tests for rounding"""

    def test_to_money_rounds_half_up(self):
        assert to_money("10.005") == Decimal("10.01")
        assert to_money(Decimal("3.334")) == Decimal("3.33")

    def test_to_money_treats_none_as_zero(self):
        assert to_money(None) == Decimal("0.00")


class TestQuote:
    """Request-time pricing from the inventory calendar"""

    def test_sums_inventory_prices(self, db, listing, add_days):
        """Two rows at 120 give 240"""
        add_days(listing, {JAN_1: 120, JAN_2: 120})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_3, fallback=False)

        assert quote.total == Decimal("240.00")
        assert quote.nights == 2
        assert quote.currency == "USD"
        assert [p.source for p in quote.nightly_prices] == ["inventory", "inventory"]

    def test_per_day_prices_are_respected(self, db, listing, add_days):
        add_days(listing, {JAN_1: 80, JAN_2: 150, JAN_3: 95.5})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_4, fallback=False)

        assert quote.total == Decimal("325.50")

    def test_missing_days_contribute_zero(self, db, listing):
        """No rows at all: the quote is 0"""
        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_3, fallback=False)

        assert quote.total == Decimal("0.00")
        assert all(p.source == "missing" for p in quote.nightly_prices)

    def test_partial_rows_only_count_existing_days(self, db, listing, add_days):
        add_days(listing, {JAN_2: 120})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_4, fallback=False)

        assert quote.total == Decimal("120.00")
        assert quote.nights == 3

    def test_fallback_uses_listing_price_for_missing_days(self, db, listing, add_days):
        add_days(listing, {JAN_2: 120})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_4, fallback=True)

        # 100 + 120 + 100
        assert quote.total == Decimal("320.00")
        assert [p.source for p in quote.nightly_prices] == [
            "listing_default", "inventory", "listing_default"
        ]

    def test_fallback_defaults_to_setting(self, db, listing):
        with patch("app.services.pricing_engine.settings") as mock_settings:
            mock_settings.pricing_fallback_to_listing_price = True
            quote = PricingCalculator(db).quote(listing, JAN_1, JAN_3)

        assert quote.total == Decimal("200.00")

    def test_checkout_day_is_not_priced(self, db, listing, add_days):
        """Half-open range: the check-out day is not a night"""
        add_days(listing, {JAN_1: 100, JAN_2: 999})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_2, fallback=False)

        assert quote.total == Decimal("100.00")

    def test_other_listings_do_not_leak_into_quote(self, db, listing, make_listing, add_days):
        other = make_listing(title="Other")
        add_days(other, {JAN_1: 500})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_2, fallback=False)

        assert quote.total == Decimal("0.00")

    def test_to_dict_is_serializable_shape(self, db, listing, add_days):
        add_days(listing, {JAN_1: 120})

        data = PricingCalculator(db).quote(listing, JAN_1, JAN_2, fallback=False).to_dict()

        assert data["check_in"] == "2024-01-01"
        assert data["nightly_prices"][0] == {
            "date": "2024-01-01", "price": Decimal("120.00"), "source": "inventory"
        }


class TestNightlyRateTotal:
    """Acceptance-time pricing ignores per-day overrides"""

    def test_nights_times_nightly_rate(self, listing):
        total = PricingCalculator.nightly_rate_total(listing, JAN_1, JAN_3)
        assert total == Decimal("200.00")

    def test_ignores_inventory_overrides(self, db, listing, add_days):
        add_days(listing, {JAN_1: 120, JAN_2: 120})

        quote = PricingCalculator(db).quote(listing, JAN_1, JAN_3, fallback=False)
        total = PricingCalculator.nightly_rate_total(listing, JAN_1, JAN_3)

        assert quote.total == Decimal("240.00")
        assert total == Decimal("200.00")

    @pytest.mark.parametrize("nights,expected", [(1, "100.00"), (3, "300.00"), (7, "700.00")])
    def test_scales_with_nights(self, listing, nights, expected):
        check_out = date(2024, 1, 1 + nights)
        assert PricingCalculator.nightly_rate_total(listing, JAN_1, check_out) == Decimal(expected)
