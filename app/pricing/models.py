"""
Pricing models.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class CreatorPricingProfile(BaseModel):
    """
    A creator's base rates and price bounds.

    Fields:
        base_rate_tokens: Default base price for any item type
        item_rates: Per item type overrides, e.g. {"call": 300}
        price_floor / price_ceiling: Final quotes are clamped to these
        allow_dynamic_pricing: When False, demand, time-of-day and PPP
            multipliers are not applied
    """

    creator = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pricing_profile",
        primary_key=True,
    )
    base_rate_tokens = models.PositiveIntegerField(default=100)
    item_rates = models.JSONField(default=dict, blank=True)
    price_floor = models.PositiveIntegerField(default=30)
    price_ceiling = models.PositiveIntegerField(default=1000)
    allow_dynamic_pricing = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(price_floor__lte=F("price_ceiling")),
                name="pricing_floor_below_ceiling",
            ),
        ]

    def __str__(self) -> str:
        return f"CreatorPricingProfile({self.creator_id}, {self.base_rate_tokens})"

    def base_rate_for(self, item_type: str) -> int:
        return int(self.item_rates.get(item_type, self.base_rate_tokens))


class DiscountType(models.TextChoices):
    PERCENTAGE = "percentage", "Percentage"
    FIXED = "fixed", "Fixed Tokens"


class PromoCode(UUIDPrimaryKeyMixin, BaseModel):
    """
    Fields:
        code: Stored upper-case; lookups are case-insensitive
        discount_value: Percent (0-100) or tokens, depending on discount_type
        min_purchase_tokens: Price the promo applies to must reach this
        max_discount_tokens: Cap on the discount
        applicable_items: Item types the code is limited to; empty means any
        allowed_users: Users the code is limited to; empty means anyone
    """

    code = models.CharField(max_length=32, unique=True)
    discount_type = models.CharField(max_length=16, choices=DiscountType.choices)
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    min_purchase_tokens = models.PositiveIntegerField(default=0)
    max_discount_tokens = models.PositiveIntegerField()
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    usage_limit = models.PositiveIntegerField()
    usage_count = models.PositiveIntegerField(default=0)
    applicable_items = models.JSONField(default=list, blank=True)
    allowed_users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="+",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"PromoCode({self.code}, {self.discount_type} {self.discount_value})"

    def save(self, *args, **kwargs):
        self.code = self.code.upper()
        super().save(*args, **kwargs)

    def rejection_reason(self, buyer, item_type: str, price: Decimal) -> str | None:
        """Why the code cannot be used for this purchase, or None when it can."""
        now = timezone.now()
        if not self.is_active:
            return "Promo code is inactive"
        if now < self.valid_from:
            return "Promo code not yet valid"
        if now > self.valid_until:
            return "Promo code expired"
        if self.usage_count >= self.usage_limit:
            return "Promo code usage limit reached"
        if price < self.min_purchase_tokens:
            return "Minimum purchase not met"
        if self.applicable_items and item_type not in self.applicable_items:
            return "Promo code not applicable to this item"
        if self.allowed_users.exists() and not self.allowed_users.filter(pk=buyer.pk).exists():
            return "Promo code not available for this user"
        return None

    def discount_for(self, price: Decimal) -> Decimal:
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = price * self.discount_value / 100
        else:
            discount = Decimal(self.discount_value)
        return min(discount, Decimal(self.max_discount_tokens))


class PromoRedemption(UUIDPrimaryKeyMixin, BaseModel):
    promo = models.ForeignKey(PromoCode, on_delete=models.PROTECT, related_name="redemptions")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="promo_redemptions",
    )
    item_type = models.CharField(max_length=16)
    discount_tokens = models.PositiveIntegerField()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"PromoRedemption({self.promo_id}, {self.user_id}, -{self.discount_tokens})"
