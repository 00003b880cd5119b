"""
URL configuration for the escrow app.

All routes are prefixed with /api/v1/escrow/ when included in the main URLconf.
"""

from django.urls import path

from escrow import views

app_name = "escrow"

urlpatterns = [
    path("wallet/", views.WalletView.as_view(), name="wallet"),
    path("escrows/", views.EscrowListCreateView.as_view(), name="escrow-list"),
    path("escrows/<uuid:escrow_id>/", views.EscrowDetailView.as_view(), name="escrow-detail"),
    path(
        "escrows/<uuid:escrow_id>/release/",
        views.EscrowReleaseView.as_view(),
        name="escrow-release",
    ),
    path(
        "escrows/<uuid:escrow_id>/delivery/",
        views.EscrowDeliveryView.as_view(),
        name="escrow-delivery",
    ),
    path(
        "escrows/<uuid:escrow_id>/cancel/",
        views.EscrowCancelView.as_view(),
        name="escrow-cancel",
    ),
    path(
        "escrows/<uuid:escrow_id>/voluntary-refund/",
        views.EscrowVoluntaryRefundView.as_view(),
        name="escrow-voluntary-refund",
    ),
    path("refunds/", views.RefundRequestView.as_view(), name="refund-list"),
    path("admin/refunds/", views.RefundReviewQueueView.as_view(), name="refund-queue"),
    path(
        "admin/refunds/<uuid:request_id>/resolve/",
        views.RefundResolveView.as_view(),
        name="refund-resolve",
    ),
]
