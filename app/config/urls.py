"""
URL configuration for the messaging backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Identity and profiles
        session/                   - Refresh session from an ID token (POST)
        profile/                   - Caller's profile (GET/PATCH)
        contacts/                  - Other profiles (GET)
    /api/v1/chat/                  - Conversation store
        conversations/             - Caller's conversations (GET)
        conversations/{peer}/messages/ - History (GET) / send (POST)
    /api/v1/notifications/         - Push tokens
        devices/tokens/            - Register an issued token (POST)
        devices/tokens/rotate/     - Record a token rotation (POST)

WebSocket routes live in chat/routing.py (see config/asgi.py).

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Identity and profiles
    path("auth/", include("authentication.urls")),
    # Chat
    path("chat/", include("chat.urls")),
    # Push notifications
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Messaging Admin"
admin.site.site_title = "Messaging Admin"
admin.site.index_title = "Profiles, conversations and push delivery"
