from django.contrib import admin

from pricing.models import CreatorPricingProfile, PromoCode, PromoRedemption


@admin.register(CreatorPricingProfile)
class CreatorPricingProfileAdmin(admin.ModelAdmin):
    list_display = ["creator", "base_rate_tokens", "price_floor", "price_ceiling", "allow_dynamic_pricing"]
    search_fields = ["creator__email"]


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "discount_type",
        "discount_value",
        "usage_count",
        "usage_limit",
        "valid_until",
        "is_active",
    ]
    list_filter = ["discount_type", "is_active"]
    search_fields = ["code"]
    readonly_fields = ["usage_count"]
    filter_horizontal = ["allowed_users"]


@admin.register(PromoRedemption)
class PromoRedemptionAdmin(admin.ModelAdmin):
    list_display = ["promo", "user", "item_type", "discount_tokens", "created_at"]
    search_fields = ["promo__code", "user__email"]
