"""
Tests for the pure price calculation functions.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from accounts.models import LoyaltyTier
from pricing import calculator
from pricing.calculator import PriceFactors


class TestDemandMultiplier:
    @pytest.mark.parametrize(
        "ratio,expected",
        [
            (0.1, Decimal("2.0")),
            (0.3, Decimal("1.5")),
            (0.49, Decimal("1.5")),
            (0.5, Decimal("1.0")),
            (1.5, Decimal("1.0")),
            (2.0, Decimal("0.8")),
        ],
    )
    def test_bands(self, ratio, expected):
        assert calculator.demand_multiplier(ratio, peak_hour=False) == expected

    def test_peak_hour_surcharge(self):
        assert calculator.demand_multiplier(1.0, peak_hour=True) == Decimal("1.2")
        assert calculator.demand_multiplier(0.1, peak_hour=True) == Decimal("2.4")


class TestPeakHour:
    def test_evening_utc_is_peak(self):
        assert calculator.is_peak_hour(datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc))
        assert calculator.is_peak_hour(datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc))

    def test_daytime_is_not_peak(self):
        assert not calculator.is_peak_hour(datetime(2026, 3, 1, 17, 59, tzinfo=timezone.utc))
        assert not calculator.is_peak_hour(datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc))


class TestBuyerAdjustments:
    def test_known_country(self):
        assert calculator.geo_adjustment("pl") == Decimal("0.6")

    def test_unknown_or_missing_country(self):
        assert calculator.geo_adjustment("JP") == Decimal("1.0")
        assert calculator.geo_adjustment("") == Decimal("1.0")

    def test_loyalty_tiers(self):
        assert calculator.loyalty_discount(LoyaltyTier.BRONZE) == Decimal("0.05")
        assert calculator.loyalty_discount(LoyaltyTier.DIAMOND) == Decimal("0.30")


class TestAdjustedPrice:
    def test_multipliers_then_discounts(self):
        factors = PriceFactors(
            demand_multiplier=Decimal("1.5"),
            time_of_day_multiplier=Decimal("1.2"),
            geo_adjustment=Decimal("0.5"),
            loyalty_discount=Decimal("0.10"),
            first_time_discount=Decimal("0.15"),
        )

        # 100 * 1.5 * 1.2 * 0.5 = 90, less 25%
        assert calculator.adjusted_price(100, factors) == Decimal("67.5")

    def test_neutral_factors(self):
        assert calculator.adjusted_price(80, PriceFactors()) == Decimal("80")


class TestFinalizePrice:
    def test_rounds_half_up(self):
        assert calculator.finalize_price(Decimal("67.5"), 10) == 68
        assert calculator.finalize_price(Decimal("67.49"), 10) == 67

    def test_platform_minimum(self):
        assert calculator.finalize_price(Decimal("3"), 10) == 10

    def test_creator_bounds(self):
        assert calculator.finalize_price(Decimal("20"), 10, floor_tokens=30) == 30
        assert calculator.finalize_price(Decimal("2000"), 10, ceiling_tokens=1000) == 1000
