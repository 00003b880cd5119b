"""
Price calculation.

Pure functions over Decimal; no database access. The service gathers the
inputs (market conditions, buyer profile, creator bounds) and these
functions turn them into a token price.

    price = base x demand x time_of_day x geo x (1 - loyalty - first_time)
    price = price - promo
    final = clamp(max(minimum, round(price)), creator_floor, creator_ceiling)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from accounts.models import LoyaltyTier

PEAK_HOURS_UTC = range(18, 24)
PEAK_MULTIPLIER = Decimal("1.2")

DEMAND_MULTIPLIER_MIN = Decimal("0.5")
DEMAND_MULTIPLIER_MAX = Decimal("3.0")

FIRST_TIME_BUYER_DISCOUNT = Decimal("0.15")

LOYALTY_DISCOUNTS = {
    LoyaltyTier.BRONZE: Decimal("0.05"),
    LoyaltyTier.SILVER: Decimal("0.10"),
    LoyaltyTier.GOLD: Decimal("0.15"),
    LoyaltyTier.PLATINUM: Decimal("0.20"),
    LoyaltyTier.DIAMOND: Decimal("0.30"),
}

# Purchasing power parity relative to USD
PPP_ADJUSTMENTS = {
    "US": Decimal("1.0"),
    "GB": Decimal("0.95"),
    "DE": Decimal("0.9"),
    "FR": Decimal("0.9"),
    "PL": Decimal("0.6"),
    "BR": Decimal("0.5"),
    "IN": Decimal("0.4"),
    "NG": Decimal("0.35"),
}


@dataclass(frozen=True)
class PriceFactors:
    demand_multiplier: Decimal = Decimal("1")
    time_of_day_multiplier: Decimal = Decimal("1")
    geo_adjustment: Decimal = Decimal("1")
    loyalty_discount: Decimal = Decimal("0")
    first_time_discount: Decimal = Decimal("0")

    @property
    def total_discount(self) -> Decimal:
        return self.loyalty_discount + self.first_time_discount


def is_peak_hour(moment: datetime) -> bool:
    return moment.astimezone(timezone.utc).hour in PEAK_HOURS_UTC


def demand_multiplier(supply_demand_ratio: float, peak_hour: bool) -> Decimal:
    """
    Surge multiplier from active creators per active buyer.

    Scarce supply raises prices, oversupply lowers them; peak hours add 20%.
    Result is clamped to [0.5, 3.0].
    """
    if supply_demand_ratio < 0.3:
        multiplier = Decimal("2.0")
    elif supply_demand_ratio < 0.5:
        multiplier = Decimal("1.5")
    elif supply_demand_ratio > 1.5:
        multiplier = Decimal("0.8")
    else:
        multiplier = Decimal("1.0")

    if peak_hour:
        multiplier *= PEAK_MULTIPLIER

    return min(DEMAND_MULTIPLIER_MAX, max(DEMAND_MULTIPLIER_MIN, multiplier))


def geo_adjustment(country: str) -> Decimal:
    return PPP_ADJUSTMENTS.get((country or "").upper(), Decimal("1.0"))


def loyalty_discount(tier: str) -> Decimal:
    return LOYALTY_DISCOUNTS.get(tier, Decimal("0"))


def adjusted_price(base_tokens: int, factors: PriceFactors) -> Decimal:
    """Base price with multipliers and percentage discounts, before promo and rounding."""
    price = (
        Decimal(base_tokens)
        * factors.demand_multiplier
        * factors.time_of_day_multiplier
        * factors.geo_adjustment
    )
    return price * (1 - factors.total_discount)


def finalize_price(
    price: Decimal,
    minimum_tokens: int,
    floor_tokens: int | None = None,
    ceiling_tokens: int | None = None,
) -> int:
    """Round half up, enforce the platform minimum, then the creator's bounds."""
    rounded = int(price.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    final = max(minimum_tokens, rounded)
    if floor_tokens is not None:
        final = max(floor_tokens, final)
    if ceiling_tokens is not None:
        final = min(ceiling_tokens, final)
    return final
