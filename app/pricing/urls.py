"""
URL configuration for the pricing app.

All routes are prefixed with /api/v1/pricing/ when included in the main URLconf.
"""

from django.urls import path

from pricing import views

app_name = "pricing"

urlpatterns = [
    path("quote/", views.QuoteView.as_view(), name="quote"),
    path("profile/", views.PricingProfileView.as_view(), name="profile"),
    path("promos/redeem/", views.RedeemPromoView.as_view(), name="promo-redeem"),
]
