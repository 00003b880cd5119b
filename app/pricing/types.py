"""
Typed results for pricing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class MarketConditions:
    active_buyers: int
    active_creators: int
    peak_hour: bool

    @property
    def supply_demand_ratio(self) -> float:
        return self.active_creators / (self.active_buyers or 1)


@dataclass
class PriceQuote:
    """
    A price offered to one buyer for one creator item.

    Attributes:
        base_tokens: Creator's base rate for the item type
        final_tokens: Price to charge
        demand_multiplier ... first_time_discount: Factors applied
        promo_code / promo_discount_tokens: Promo applied, if any
        promo_error: Why a supplied promo code was not applied
        valid_until: Quote expiry (matches the cache TTL)
    """

    creator_id: str
    item_type: str
    base_tokens: int
    final_tokens: int
    demand_multiplier: Decimal
    time_of_day_multiplier: Decimal
    geo_adjustment: Decimal
    loyalty_discount: Decimal
    first_time_discount: Decimal
    valid_until: datetime
    promo_code: str | None = None
    promo_discount_tokens: int = 0
    promo_error: str | None = None
