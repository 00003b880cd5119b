from rest_framework import serializers

from escrow.state_machines import TransactionType
from pricing.models import CreatorPricingProfile, PromoRedemption


class QuoteRequestSerializer(serializers.Serializer):
    creator_id = serializers.UUIDField()
    item_type = serializers.ChoiceField(choices=TransactionType.choices)
    promo_code = serializers.CharField(max_length=32, required=False, allow_blank=True)


class PriceQuoteSerializer(serializers.Serializer):
    creator_id = serializers.CharField()
    item_type = serializers.CharField()
    base_tokens = serializers.IntegerField()
    final_tokens = serializers.IntegerField()
    demand_multiplier = serializers.DecimalField(max_digits=6, decimal_places=3)
    time_of_day_multiplier = serializers.DecimalField(max_digits=6, decimal_places=3)
    geo_adjustment = serializers.DecimalField(max_digits=6, decimal_places=3)
    loyalty_discount = serializers.DecimalField(max_digits=6, decimal_places=3)
    first_time_discount = serializers.DecimalField(max_digits=6, decimal_places=3)
    promo_code = serializers.CharField(allow_null=True)
    promo_discount_tokens = serializers.IntegerField()
    promo_error = serializers.CharField(allow_null=True)
    valid_until = serializers.DateTimeField()


class CreatorPricingProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreatorPricingProfile
        fields = [
            "base_rate_tokens",
            "item_rates",
            "price_floor",
            "price_ceiling",
            "allow_dynamic_pricing",
        ]

    def validate_item_rates(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object of item type to tokens.")
        for item_type, tokens in value.items():
            if item_type not in TransactionType.values:
                raise serializers.ValidationError(f"Unknown item type: {item_type}")
            if not isinstance(tokens, int) or tokens <= 0:
                raise serializers.ValidationError(f"Rate for {item_type} must be a positive integer.")
        return value


class RedeemPromoSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    item_type = serializers.ChoiceField(choices=TransactionType.choices)
    price_tokens = serializers.IntegerField(min_value=1)


class PromoRedemptionSerializer(serializers.ModelSerializer):
    code = serializers.CharField(source="promo.code", read_only=True)

    class Meta:
        model = PromoRedemption
        fields = ["id", "code", "item_type", "discount_tokens", "created_at"]
        read_only_fields = fields
