"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/<peer_id>/ - Open the conversation between the caller and peer_id

Authentication:
    The identity-provider ID token is passed as ?token=<id token> (or as the
    second "bearer" subprotocol). ?session=<id> names the client session for
    presence tracking; it defaults to the connection's channel name.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/<str:peer_id>/",
        consumers.ChatConsumer.as_asgi(),
    ),
]
