"""
WebSocket authentication middleware.

Authenticates WebSocket connections with the same identity-provider ID token
the REST API accepts, and attaches the caller's Profile to scope["user"].

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers
    - config/asgi.py: ASGI configuration

Token Passing Methods:
    1. Query string: ws://host/ws/chat/<peer>/?token=<id token>
    2. Subprotocol: Sec-WebSocket-Protocol: bearer, <id token>

Usage in config/asgi.py:
    from chat.middleware import IdentityTokenAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": IdentityTokenAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from authentication.identity import get_identity_provider
from authentication.services import ProfileStore
from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


class IdentityTokenAuthMiddleware(BaseMiddleware):
    """
    Identity-token authentication for WebSocket connections.

    Token sources (in order of precedence):
        1. Query string: ?token=<id token>
        2. Subprotocol: Sec-WebSocket-Protocol: bearer, <id token>

    Failed verification leaves an AnonymousUser in scope; the consumer
    rejects the connection.
    """

    def __init__(self, inner, identity_provider=None, profile_store=None):
        super().__init__(inner)
        self.identity_provider = identity_provider
        self.profile_store = profile_store

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = self._get_token_from_query(scope) or self._get_token_from_subprotocol(scope)

        if token:
            scope["user"] = await self._get_profile_from_token(token)
        else:
            scope["user"] = AnonymousUser()

        return await super().__call__(scope, receive, send)

    def _get_token_from_query(self, scope) -> str | None:
        query_string = scope.get("query_string", b"").decode()
        token_list = parse_qs(query_string).get("token", [])
        return token_list[0] if token_list else None

    def _get_token_from_subprotocol(self, scope) -> str | None:
        subprotocols = scope.get("subprotocols", [])
        if len(subprotocols) >= 2 and subprotocols[0].lower() == "bearer":
            return subprotocols[1]
        return None

    async def _get_profile_from_token(self, token: str):
        provider = self.identity_provider or get_identity_provider()
        store = self.profile_store or ProfileStore()
        try:
            claims = await sync_to_async(provider.verify, thread_sensitive=False)(token)
            return await store.ensure_profile(claims)
        except BaseApplicationError as e:
            logger.warning(f"WebSocket identity token rejected: {e}")
            return AnonymousUser()
