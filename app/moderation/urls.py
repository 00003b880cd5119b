"""
URL configuration for the moderation app.

All routes are prefixed with /api/v1/moderation/ when included in the main URLconf.
"""

from django.urls import path

from moderation import views

app_name = "moderation"

urlpatterns = [
    path("comments/", views.CommentCreateView.as_view(), name="comment-create"),
    path("restrictions/", views.RestrictionsView.as_view(), name="restrictions"),
    path("shield/", views.CreatorShieldView.as_view(), name="shield"),
    path(
        "defamation-reports/<uuid:report_id>/evidence/",
        views.DefamationEvidenceView.as_view(),
        name="defamation-evidence",
    ),
    path("admin/cases/", views.AbuseCaseQueueView.as_view(), name="case-queue"),
    path(
        "admin/cases/<uuid:case_id>/resolve/",
        views.AbuseCaseResolveView.as_view(),
        name="case-resolve",
    ),
]
