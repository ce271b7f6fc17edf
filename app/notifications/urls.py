"""
URL configuration for notifications API.

Routes:
    /devices/tokens/          - Register an issued push token (POST)
    /devices/tokens/rotate/   - Record a token rotation (POST)
"""

from django.urls import path

from notifications.views import DeviceTokenRotateView, DeviceTokenView

app_name = "notifications"
urlpatterns = [
    path("devices/tokens/", DeviceTokenView.as_view(), name="device-tokens"),
    path(
        "devices/tokens/rotate/",
        DeviceTokenRotateView.as_view(),
        name="device-tokens-rotate",
    ),
]
