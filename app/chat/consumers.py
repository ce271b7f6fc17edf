"""
WebSocket consumers for the chat application.

Consumers:
    ChatConsumer: One conversation between the caller and a peer

Authentication:
    IdentityTokenAuthMiddleware attaches the caller's Profile to
    self.scope["user"]; anonymous connections are closed with 4001.

Lifecycle:
    connect     -> mark the conversation foregrounded for this session,
                   open a replay-then-live subscription and stream it
    heartbeat   -> refresh the session's presence TTL every
                   PRESENCE_CONFIG.HEARTBEAT_INTERVAL_SECONDS
    disconnect  -> cancel the stream, close the subscription, clear presence

Message Types (from client):
    {"type": "message", "body": "hola", "attachment_url": null}
    {"type": "presence", "active": false}      # app backgrounded
    {"type": "presence", "active": true}       # app foregrounded / heartbeat

Message Types (to client):
    {"type": "message", "message": {...}}      # history replay, then live
    {"type": "sent", "message_id": 42}         # ack of the caller's append
    {"type": "error", "error": "...", "error_code": "...", "retryable": bool}

Close Codes:
    4000: Invalid peer id
    4001: Not authenticated
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import PRESENCE_CONFIG
from chat.identifiers import conversation_id_for
from chat.presence import PresenceTracker
from chat.services import ConversationStore, MessageDraft
from core.exceptions import BaseApplicationError, ValidationError

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for one 1:1 conversation.

    Attributes:
        peer_id: uid of the other participant (from the URL)
        conversation_id: Canonical id derived from (caller, peer)
        presence: PresenceTracker for this connection's session
        subscription: Open replay-then-live subscription
    """

    store_class = ConversationStore
    heartbeat_interval = PRESENCE_CONFIG.HEARTBEAT_INTERVAL_SECONDS

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.store = self.store_class()
        self.peer_id: str | None = None
        self.conversation_id: str | None = None
        self.presence: PresenceTracker | None = None
        self.subscription = None
        self.stream_task: asyncio.Task | None = None
        self.heartbeat_task: asyncio.Task | None = None

    async def connect(self):
        user = self.scope.get("user")
        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated chat connection")
            await self.close(code=4001)
            return

        self.peer_id = self.scope["url_route"]["kwargs"]["peer_id"]
        try:
            self.conversation_id = conversation_id_for(user.uid, self.peer_id)
        except ValidationError:
            logger.warning(f"User {user.uid} tried to open chat with invalid peer {self.peer_id!r}")
            await self.close(code=4000)
            return

        self.presence = PresenceTracker(user.uid, self._session_id())
        await sync_to_async(self.presence.set_active)(self.conversation_id)

        await self.accept()
        self.subscription = await self.store.subscribe(self.conversation_id)
        self.stream_task = asyncio.create_task(self._stream())
        self.heartbeat_task = asyncio.create_task(self._heartbeat())
        logger.info(f"User {user.uid} connected to conversation {self.conversation_id}")

    async def disconnect(self, close_code):
        for task in (self.heartbeat_task, self.stream_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self.subscription is not None:
            await self.subscription.close()
        if self.presence is not None:
            await sync_to_async(self.presence.set_active)(None)
        if self.conversation_id:
            logger.info(
                f"User {self.scope['user'].uid} disconnected from "
                f"conversation {self.conversation_id} (code={close_code})"
            )

    async def receive_json(self, content, **kwargs):
        message_type = content.get("type")

        if message_type == "message":
            await self._handle_message(content)
        elif message_type == "presence":
            active = bool(content.get("active", True))
            await sync_to_async(self.presence.set_active)(
                self.conversation_id if active else None
            )
        else:
            await self.send_json(
                {
                    "type": "error",
                    "error": f"Unknown message type: {message_type}",
                    "error_code": "UNKNOWN_TYPE",
                    "retryable": False,
                }
            )

    async def _handle_message(self, content):
        draft = MessageDraft(
            sender_id=self.scope["user"].uid,
            receiver_id=self.peer_id,
            body=content.get("body") or "",
            attachment_url=content.get("attachment_url"),
        )
        try:
            message = await self.store.append(self.conversation_id, draft)
        except BaseApplicationError as e:
            await self.send_json({"type": "error", **e.to_dict()})
            return
        await self.send_json({"type": "sent", "message_id": message.id})

    async def _stream(self):
        try:
            async for message in self.subscription:
                await self.send_json({"type": "message", "message": message.to_event()})
        except Exception:
            logger.exception(f"Chat stream for {self.conversation_id} failed")
            await self.close(code=1011)

    async def _heartbeat(self):
        # Keeps a foregrounded session from expiring while the socket is open;
        # a backgrounded session stays cleared
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await sync_to_async(self.presence.refresh)()
            except Exception:
                logger.exception(f"Presence refresh failed for {self.conversation_id}")

    def _session_id(self) -> str:
        query = parse_qs(self.scope.get("query_string", b"").decode())
        session = query.get("session", [])
        return session[0] if session else self.channel_name
