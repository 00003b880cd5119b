"""
Tests for PricingService.
"""

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from freezegun import freeze_time

from accounts.models import LoyaltyTier
from accounts.tests.factories import CreatorFactory, UserFactory
from escrow.state_machines import TransactionType
from escrow.tests.factories import EscrowRecordFactory
from pricing.models import DiscountType, PromoRedemption
from pricing.services import PricingService
from pricing.tests.factories import CreatorPricingProfileFactory, PromoCodeFactory


def returning_buyer(**kwargs):
    """A buyer who already paid once, so no first-time discount applies."""
    buyer = UserFactory(**kwargs)
    EscrowRecordFactory(payer=buyer)
    return buyer


class TestQuoteValidation:
    def test_rejects_non_creator(self, db):
        result = PricingService.quote(UserFactory(), UserFactory(), TransactionType.CALL)

        assert not result.success
        assert result.error_code == "CREATOR_NOT_FOUND"

    def test_rejects_unknown_item_type(self, db):
        result = PricingService.quote(UserFactory(), CreatorFactory(), "massage")

        assert result.error_code == "INVALID_ITEM_TYPE"

    def test_rejects_self_purchase(self, db):
        creator = CreatorFactory()

        result = PricingService.quote(creator, creator, TransactionType.CALL)

        assert result.error_code == "SELF_PURCHASE"


class TestQuote:
    def test_static_pricing_applies_loyalty_only(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.GOLD)

        quote = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        assert quote.base_tokens == 100
        assert quote.demand_multiplier == Decimal("1")
        assert quote.final_tokens == 85

    def test_first_time_buyer_discount(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = UserFactory(loyalty_tier=LoyaltyTier.BRONZE)

        quote = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        assert quote.first_time_discount == Decimal("0.15")
        assert quote.final_tokens == 80

    def test_item_rate_overrides_base_rate(self, db):
        profile = CreatorPricingProfileFactory(item_rates={"meeting": 400})
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.BRONZE)

        quote = PricingService.quote(buyer, profile.creator, TransactionType.MEETING).data

        assert quote.base_tokens == 400
        assert quote.final_tokens == 380

    def test_floor_applies(self, db):
        profile = CreatorPricingProfileFactory(base_rate_tokens=20, price_floor=50)
        buyer = returning_buyer()

        quote = PricingService.quote(buyer, profile.creator, TransactionType.MESSAGE).data

        assert quote.final_tokens == 50

    def test_ceiling_applies(self, db):
        profile = CreatorPricingProfileFactory(base_rate_tokens=5000, price_ceiling=1000)
        buyer = returning_buyer()

        quote = PricingService.quote(buyer, profile.creator, TransactionType.EVENT).data

        assert quote.final_tokens == 1000

    @freeze_time("2026-03-02 19:00:00")
    def test_dynamic_pricing_at_peak_with_scarce_supply(self, db):
        profile = CreatorPricingProfileFactory(allow_dynamic_pricing=True)
        buyer = returning_buyer(country="PL", loyalty_tier=LoyaltyTier.BRONZE)
        now = timezone.now()
        for _ in range(10):
            UserFactory(last_active_at=now)
        profile.creator.last_active_at = now
        profile.creator.save(update_fields=["last_active_at"])

        quote = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        # 1 creator to 10 buyers: 2.0 x 1.2 peak surcharge, then 1.2 time of day
        assert quote.demand_multiplier == Decimal("2.40")
        assert quote.time_of_day_multiplier == Decimal("1.2")
        assert quote.geo_adjustment == Decimal("0.6")
        # 100 * 2.4 * 1.2 * 0.6 * 0.95 = 164.16
        assert quote.final_tokens == 164

    @freeze_time("2026-03-02 10:00:00")
    def test_dynamic_pricing_off_peak_balanced_market(self, db):
        profile = CreatorPricingProfileFactory(allow_dynamic_pricing=True)
        buyer = returning_buyer(country="US", loyalty_tier=LoyaltyTier.BRONZE)
        now = timezone.now()
        UserFactory(last_active_at=now)
        profile.creator.last_active_at = now
        profile.creator.save(update_fields=["last_active_at"])

        quote = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        assert quote.demand_multiplier == Decimal("1.0")
        assert quote.time_of_day_multiplier == Decimal("1")
        assert quote.final_tokens == 95


class TestQuoteCache:
    def test_repeat_quote_is_served_from_cache(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer()

        first = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data
        profile.base_rate_tokens = 500
        profile.save()
        second = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        assert second.final_tokens == first.final_tokens

    def test_profile_update_invalidates_cache(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.BRONZE)
        PricingService.quote(buyer, profile.creator, TransactionType.CALL)

        PricingService.update_profile(profile.creator, base_rate_tokens=200)
        quote = PricingService.quote(buyer, profile.creator, TransactionType.CALL).data

        assert quote.final_tokens == 190

    def test_update_rejects_inverted_bounds(self, db):
        profile = CreatorPricingProfileFactory()

        result = PricingService.update_profile(profile.creator, price_floor=900, price_ceiling=100)

        assert result.error_code == "INVALID_PRICE_BOUNDS"


class TestPromoInQuote:
    def test_percentage_promo(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.BRONZE)
        PromoCodeFactory(code="SPRING10")

        quote = PricingService.quote(
            buyer, profile.creator, TransactionType.CALL, promo_code="spring10"
        ).data

        # 95 less 9.5
        assert quote.promo_code == "SPRING10"
        assert quote.promo_discount_tokens == 10
        assert quote.final_tokens == 86
        assert quote.promo_error is None

    def test_fixed_promo_capped(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.BRONZE)
        PromoCodeFactory(
            code="FLAT50",
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("50"),
            max_discount_tokens=20,
        )

        quote = PricingService.quote(
            buyer, profile.creator, TransactionType.CALL, promo_code="FLAT50"
        ).data

        assert quote.promo_discount_tokens == 20
        assert quote.final_tokens == 75

    def test_invalid_promo_reported_not_fatal(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer(loyalty_tier=LoyaltyTier.BRONZE)

        result = PricingService.quote(
            buyer, profile.creator, TransactionType.CALL, promo_code="NOPE"
        )

        assert result.success
        assert result.data.promo_error == "Invalid promo code"
        assert result.data.promo_code is None
        assert result.data.final_tokens == 95

    def test_expired_promo(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer()
        PromoCodeFactory(code="OLD", valid_until=timezone.now() - timedelta(minutes=1))

        quote = PricingService.quote(
            buyer, profile.creator, TransactionType.CALL, promo_code="OLD"
        ).data

        assert quote.promo_error == "Promo code expired"

    def test_item_restricted_promo(self, db):
        profile = CreatorPricingProfileFactory()
        buyer = returning_buyer()
        PromoCodeFactory(code="CALLS", applicable_items=["call"])

        quote = PricingService.quote(
            buyer, profile.creator, TransactionType.MESSAGE, promo_code="CALLS"
        ).data

        assert quote.promo_error == "Promo code not applicable to this item"


class TestRedeemPromo:
    def test_redeem_consumes_a_use(self, db):
        promo = PromoCodeFactory(code="ONCE", usage_limit=1)
        buyer = UserFactory()

        result = PricingService.redeem_promo(buyer, "once", TransactionType.CALL, 200)

        assert result.success
        assert result.data.discount_tokens == 20
        promo.refresh_from_db()
        assert promo.usage_count == 1

    def test_usage_limit_enforced(self, db):
        PromoCodeFactory(code="ONCE", usage_limit=1)
        PricingService.redeem_promo(UserFactory(), "ONCE", TransactionType.CALL, 200)

        result = PricingService.redeem_promo(UserFactory(), "ONCE", TransactionType.CALL, 200)

        assert not result.success
        assert result.error_code == "PROMO_REJECTED"
        assert PromoRedemption.objects.count() == 1

    def test_unknown_code(self, db):
        result = PricingService.redeem_promo(UserFactory(), "GHOST", TransactionType.CALL, 200)

        assert result.error_code == "PROMO_NOT_FOUND"

    def test_restricted_to_allowed_users(self, db):
        promo = PromoCodeFactory(code="VIPONLY")
        vip = UserFactory()
        promo.allowed_users.add(vip)

        denied = PricingService.redeem_promo(UserFactory(), "VIPONLY", TransactionType.CALL, 200)
        allowed = PricingService.redeem_promo(vip, "VIPONLY", TransactionType.CALL, 200)

        assert denied.error_code == "PROMO_REJECTED"
        assert allowed.success

    def test_minimum_purchase(self, db):
        PromoCodeFactory(code="BIG", min_purchase_tokens=500)

        result = PricingService.redeem_promo(UserFactory(), "BIG", TransactionType.CALL, 200)

        assert result.error == "Minimum purchase not met"
