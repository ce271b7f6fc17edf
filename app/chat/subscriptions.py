"""
Replay-then-live subscriptions to a conversation log.

A Subscription is an async iterator over a conversation's messages. It joins
the conversation's channel-layer group *before* reading history, so a message
appended while history is being read still produces a wake-up. Wake-ups carry
no payload the subscriber trusts: on each one it reads `id > cursor` from the
store. Delivery is therefore ordered, gap free and at-least-once; a wake-up
for a message already read from history yields nothing.

Closing a subscription (or disconnecting) drops it with no retry. A new
subscription replays the full history again.

Usage:
    subscription = await store.subscribe(conversation_id)
    try:
        async for message in subscription:
            await websocket.send_json(message.to_event())
    finally:
        await subscription.close()
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import TYPE_CHECKING

from chat.identifiers import group_name_for

if TYPE_CHECKING:
    from chat.models import Message
    from chat.services import ConversationStore

logger = logging.getLogger(__name__)


class Subscription:
    """
    Ordered, restartable stream of one conversation's messages.

    Attributes:
        conversation_id: Conversation being followed
        cursor: id of the newest message fetched so far (None before any)
    """

    def __init__(self, store: ConversationStore, conversation_id: str, channel_layer):
        self.store = store
        self.conversation_id = conversation_id
        self.channel_layer = channel_layer
        self.group_name = group_name_for(conversation_id)
        self.channel_name: str | None = None
        self.cursor: int | None = None
        self._pending: deque[Message] = deque()
        self._waiter: asyncio.Future | None = None
        self._opened = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Join the fan-out group, then load the full history."""
        if self._opened:
            return
        self._opened = True
        self.channel_name = await self.channel_layer.new_channel()
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self._fetch()
        logger.debug(
            f"Subscribed {self.channel_name} to {self.conversation_id} "
            f"({len(self._pending)} messages replayed)"
        )

    async def close(self) -> None:
        """Stop the stream. Idempotent; a blocked iterator ends with StopAsyncIteration."""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        if self._waiter is not None and not self._waiter.done():
            self._waiter.cancel()
        if self.channel_name is not None:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
        logger.debug(f"Closed subscription {self.channel_name} to {self.conversation_id}")

    async def _fetch(self) -> None:
        messages = await self.store.history(self.conversation_id, after_id=self.cursor)
        if messages:
            self._pending.extend(messages)
            self.cursor = messages[-1].id

    async def _wait_for_wakeup(self) -> None:
        self._waiter = asyncio.ensure_future(self.channel_layer.receive(self.channel_name))
        try:
            await self._waiter
        except asyncio.CancelledError:
            if not self._closed:
                raise
        finally:
            self._waiter = None

    def __aiter__(self):
        return self

    async def __anext__(self) -> Message:
        if not self._opened:
            await self.open()
        while not self._pending:
            if self._closed:
                raise StopAsyncIteration
            await self._wait_for_wakeup()
            if self._closed:
                raise StopAsyncIteration
            await self._fetch()
        return self._pending.popleft()

    async def __aenter__(self) -> Subscription:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
