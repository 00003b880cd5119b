"""
URL configuration for the safety app.

All routes are prefixed with /api/v1/safety/ when included in the main URLconf.
"""

from django.urls import path

from safety import views

app_name = "safety"

urlpatterns = [
    path("score/", views.SafetyScoreView.as_view(), name="score"),
    path("screen/", views.ScreenMessageView.as_view(), name="screen"),
    path("admin/adjustments/", views.ManualAdjustmentView.as_view(), name="adjust"),
]
