"""
ASGI config for the messaging backend.

This configuration supports:
- HTTP requests (REST API, admin) via Django
- WebSocket connections (live conversations) via Django Channels

Uvicorn serves this entry point:
    uvicorn config.asgi:application --app-dir app

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module for the ASGI application
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django ASGI application early to ensure settings are loaded
# before importing any models or other Django components
django_asgi_app = get_asgi_application()

# Import Channels components after Django is initialized
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import IdentityTokenAuthMiddleware  # noqa: E402
from chat.routing import websocket_urlpatterns  # noqa: E402

# ASGI application that routes HTTP and WebSocket protocols
application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # WebSocket connections are routed through:
        # 1. AllowedHostsOriginValidator - ensures origin matches ALLOWED_HOSTS
        # 2. IdentityTokenAuthMiddleware - resolves the caller's Profile
        # 3. URLRouter - routes to ChatConsumer
        "websocket": AllowedHostsOriginValidator(
            IdentityTokenAuthMiddleware(URLRouter(websocket_urlpatterns))
        ),
    }
)
