"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/session/   - Verify ID token, ensure profile (POST)
    /api/v1/auth/profile/   - Caller's profile (GET/PATCH)
    /api/v1/auth/contacts/  - Other profiles (GET)
"""

from django.urls import path

from authentication.views import ContactsView, ProfileView, SessionView

app_name = "authentication"

urlpatterns = [
    path("session/", SessionView.as_view(), name="session"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("contacts/", ContactsView.as_view(), name="contacts"),
]
