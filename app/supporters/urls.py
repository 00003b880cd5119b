"""
URL configuration for the supporters app.

All routes are prefixed with /api/v1/supporters/ when included in the main URLconf.
"""

from django.urls import path

from supporters import views

app_name = "supporters"

urlpatterns = [
    path("mine/", views.MySupportersView.as_view(), name="my-supporters"),
    path("supporting/", views.SupportingView.as_view(), name="supporting"),
    path(
        "creators/<uuid:creator_id>/top/",
        views.TopSupportersView.as_view(),
        name="top-supporters",
    ),
]
