"""
URL configuration for the gamification app.

All routes are prefixed with /api/v1/gamification/ when included in the main URLconf.
"""

from django.urls import path

from gamification import views

app_name = "gamification"

urlpatterns = [
    path("missions/", views.MissionListView.as_view(), name="missions"),
    path("activity/", views.ActivityReportView.as_view(), name="activity"),
    path(
        "missions/<uuid:mission_id>/claim/",
        views.ClaimMissionView.as_view(),
        name="mission-claim",
    ),
]
