"""
Root URL configuration.

URL Structure:
    /                                  - ReDoc API documentation
    /admin/                            - Django admin interface
    /health/                           - Health check endpoint
    /schema/                           - OpenAPI schema (YAML)
    /api/v1/escrow/                    - Wallets, escrows, refund requests
        wallet/                        - Current user's token balance
        escrows/                       - Escrow list/open
        escrows/{id}/release/          - Release to recipient
        escrows/{id}/delivery/         - Record delivery evidence
        escrows/{id}/cancel/           - Cancel a booking (meetings/events)
        refunds/                       - Refund request list/create
        admin/refunds/                 - Staff review queue
        admin/refunds/{id}/resolve/    - Staff override
    /api/v1/safety/                    - Safety scores and message screening
    /api/v1/moderation/                - Comment firewall and abuse cases
    /api/v1/pricing/                   - Price quotes and pricing profiles
    /api/v1/gamification/             - Creator missions
    /api/v1/supporters/                - Supporter rankings
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("escrow/", include("escrow.urls")),
    path("safety/", include("safety.urls")),
    path("moderation/", include("moderation.urls")),
    path("pricing/", include("pricing.urls")),
    path("gamification/", include("gamification.urls")),
    path("supporters/", include("supporters.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Creator Economy Admin"
admin.site.site_title = "Creator Economy"
admin.site.index_title = "Escrow, refunds and safety"
