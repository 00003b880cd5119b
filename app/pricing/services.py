"""
Pricing service.

Quotes are cached for PRICE_QUOTE_CACHE_SECONDS per (buyer, creator, item,
promo). Updating a creator's profile bumps a per-creator version that is
part of the cache key, so stale quotes are never served after a change.

Usage:
    from pricing.services import PricingService

    result = PricingService.quote(buyer, creator, TransactionType.CALL)
    if result.success:
        price = result.data.final_tokens
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from django.conf import settings
from django.core.cache import cache
from django.db.models import F
from django.utils import timezone

from accounts.models import User
from core.services import BaseService, ServiceResult
from escrow.models import EscrowRecord
from escrow.state_machines import TransactionType
from pricing import calculator
from pricing.models import CreatorPricingProfile, PromoCode, PromoRedemption
from pricing.types import MarketConditions, PriceQuote

ACTIVE_WINDOW = timedelta(hours=1)


class PricingService(BaseService):
    # ==========================================================================
    # Inputs
    # ==========================================================================

    @staticmethod
    def get_profile(creator: User) -> CreatorPricingProfile:
        profile, _ = CreatorPricingProfile.objects.get_or_create(creator=creator)
        return profile

    @staticmethod
    def market_conditions(now=None) -> MarketConditions:
        """Active creators and buyers over the last hour."""
        now = now or timezone.now()
        active = User.objects.filter(is_active=True, last_active_at__gte=now - ACTIVE_WINDOW)
        return MarketConditions(
            active_buyers=active.filter(is_creator=False).count(),
            active_creators=active.filter(is_creator=True).count(),
            peak_hour=calculator.is_peak_hour(now),
        )

    @staticmethod
    def is_first_time_buyer(buyer: User) -> bool:
        return not EscrowRecord.objects.filter(payer=buyer).exists()

    # ==========================================================================
    # Quotes
    # ==========================================================================

    @classmethod
    def quote(
        cls,
        buyer: User,
        creator: User,
        item_type: str,
        promo_code: str | None = None,
    ) -> ServiceResult[PriceQuote]:
        if not creator.is_creator or not creator.is_active:
            return ServiceResult.failure("Creator not found", error_code="CREATOR_NOT_FOUND")
        if item_type not in TransactionType.values:
            return ServiceResult.failure(
                f"Unknown item type: {item_type}", error_code="INVALID_ITEM_TYPE"
            )
        if buyer.pk == creator.pk:
            return ServiceResult.failure(
                "Creators cannot buy from themselves", error_code="SELF_PURCHASE"
            )

        code = promo_code.strip().upper() if promo_code else ""
        key = cls._cache_key(buyer.pk, creator.pk, item_type, code)
        cached = cache.get(key)
        if cached is not None:
            return ServiceResult.success(cached)

        quote = cls._build_quote(buyer, creator, item_type, code)
        cache.set(key, quote, timeout=settings.PRICE_QUOTE_CACHE_SECONDS)
        cls.get_logger().info(
            "Price quoted",
            extra={
                "buyer_id": str(buyer.pk),
                "creator_id": str(creator.pk),
                "item_type": item_type,
                "final_tokens": quote.final_tokens,
            },
        )
        return ServiceResult.success(quote)

    @classmethod
    def _build_quote(cls, buyer: User, creator: User, item_type: str, code: str) -> PriceQuote:
        now = timezone.now()
        profile = cls.get_profile(creator)
        base = profile.base_rate_for(item_type)

        if profile.allow_dynamic_pricing:
            market = cls.market_conditions(now)
            demand = calculator.demand_multiplier(market.supply_demand_ratio, market.peak_hour)
            time_of_day = calculator.PEAK_MULTIPLIER if market.peak_hour else Decimal("1")
            geo = calculator.geo_adjustment(buyer.country)
        else:
            demand = time_of_day = geo = Decimal("1")

        factors = calculator.PriceFactors(
            demand_multiplier=demand,
            time_of_day_multiplier=time_of_day,
            geo_adjustment=geo,
            loyalty_discount=calculator.loyalty_discount(buyer.loyalty_tier),
            first_time_discount=(
                calculator.FIRST_TIME_BUYER_DISCOUNT
                if cls.is_first_time_buyer(buyer)
                else Decimal("0")
            ),
        )
        price = calculator.adjusted_price(base, factors)

        promo_discount = Decimal("0")
        promo_error = None
        if code:
            promo = PromoCode.objects.filter(code=code).first()
            if promo is None:
                promo_error = "Invalid promo code"
            else:
                promo_error = promo.rejection_reason(buyer, item_type, price)
                if promo_error is None:
                    promo_discount = promo.discount_for(price)
            if promo_error:
                cls.get_logger().warning(
                    "Promo code not applied",
                    extra={"code": code, "buyer_id": str(buyer.pk), "reason": promo_error},
                )

        final = calculator.finalize_price(
            price - promo_discount,
            settings.PRICE_MINIMUM_TOKENS,
            profile.price_floor,
            profile.price_ceiling,
        )
        return PriceQuote(
            creator_id=str(creator.pk),
            item_type=item_type,
            base_tokens=base,
            final_tokens=final,
            demand_multiplier=factors.demand_multiplier,
            time_of_day_multiplier=factors.time_of_day_multiplier,
            geo_adjustment=factors.geo_adjustment,
            loyalty_discount=factors.loyalty_discount,
            first_time_discount=factors.first_time_discount,
            valid_until=now + timedelta(seconds=settings.PRICE_QUOTE_CACHE_SECONDS),
            promo_code=code if promo_discount else None,
            promo_discount_tokens=int(promo_discount.to_integral_value()),
            promo_error=promo_error,
        )

    # ==========================================================================
    # Promo Codes
    # ==========================================================================

    @classmethod
    def redeem_promo(
        cls,
        buyer: User,
        code: str,
        item_type: str,
        price_tokens: int,
    ) -> ServiceResult[PromoRedemption]:
        """
        Consume one use of a promo code for a purchase.

        The usage counter is incremented with a conditional update, so two
        buyers racing for the last use cannot both get it.
        """
        promo = PromoCode.objects.filter(code=(code or "").strip().upper()).first()
        if promo is None:
            return ServiceResult.failure("Invalid promo code", error_code="PROMO_NOT_FOUND")

        price = Decimal(price_tokens)
        reason = promo.rejection_reason(buyer, item_type, price)
        if reason:
            return ServiceResult.failure(reason, error_code="PROMO_REJECTED")

        discount = int(promo.discount_for(price).to_integral_value())
        with cls.atomic():
            claimed = PromoCode.objects.filter(
                pk=promo.pk, usage_count__lt=F("usage_limit")
            ).update(usage_count=F("usage_count") + 1)
            if not claimed:
                return ServiceResult.failure(
                    "Promo code usage limit reached", error_code="PROMO_REJECTED"
                )
            redemption = PromoRedemption.objects.create(
                promo=promo,
                user=buyer,
                item_type=item_type,
                discount_tokens=discount,
            )

        cls.get_logger().info(
            "Promo code redeemed",
            extra={"code": promo.code, "buyer_id": str(buyer.pk), "discount": discount},
        )
        return ServiceResult.success(redemption)

    # ==========================================================================
    # Profile
    # ==========================================================================

    @classmethod
    def update_profile(cls, creator: User, **changes) -> ServiceResult[CreatorPricingProfile]:
        profile = cls.get_profile(creator)
        for field, value in changes.items():
            setattr(profile, field, value)

        if profile.price_floor > profile.price_ceiling:
            return ServiceResult.failure(
                "Price floor must not exceed the ceiling", error_code="INVALID_PRICE_BOUNDS"
            )
        profile.save()
        cls._bump_version(creator.pk)
        return ServiceResult.success(profile)

    # ==========================================================================
    # Cache
    # ==========================================================================

    @staticmethod
    def _version_key(creator_id) -> str:
        return f"pricing:version:{creator_id}"

    @classmethod
    def _cache_key(cls, buyer_id, creator_id, item_type: str, code: str) -> str:
        version = cache.get_or_set(cls._version_key(creator_id), 1, timeout=None)
        return f"pricing:quote:{creator_id}:v{version}:{buyer_id}:{item_type}:{code}"

    @classmethod
    def _bump_version(cls, creator_id) -> None:
        key = cls._version_key(creator_id)
        try:
            cache.incr(key)
        except ValueError:
            cache.set(key, 2, timeout=None)
