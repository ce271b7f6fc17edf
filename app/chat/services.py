"""
Conversation store.

ConversationStore exclusively owns the message log. It provides:
- append: persist a message under a per-conversation lock and assign its
  server-side timestamp
- history: read a conversation's log in order, optionally after a cursor
- subscribe: replay-then-live stream of a conversation (chat.subscriptions)
- conversations_for: a user's conversations by recent activity

Ordering:
    append() locks the Conversation row (SELECT ... FOR UPDATE) before
    stamping created_at = max(now, last_message_at). Within a conversation,
    ids and timestamps therefore increase together, and "id > cursor"
    selects exactly the messages after the cursor in (created_at, id) order.

After a successful append the store:
    1. group_sends a wake-up to chat.identifiers.group_name_for(conversation)
    2. sends chat.signals.message_appended (push dispatch hooks in here)
Neither step can fail the append; errors are logged.

Usage:
    from chat.services import ConversationStore, MessageDraft

    store = ConversationStore()
    message = await store.append(
        conversation_id_for("u1", "u2"),
        MessageDraft(sender_id="u1", receiver_id="u2", body="hola"),
    )

    async with await store.subscribe(message.conversation_id) as subscription:
        async for message in subscription:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from asgiref.sync import sync_to_async
from channels.layers import get_channel_layer
from django.db.models import F, Q
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.identifiers import (
    clean_participant_id,
    conversation_id_for,
    group_name_for,
    participants_of,
)
from chat.models import Conversation, Message
from chat.signals import message_appended
from chat.subscriptions import Subscription
from core.exceptions import ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime


@dataclass(frozen=True)
class MessageDraft:
    """
    A message as submitted by a client, before the store stamps it.

    Attributes:
        sender_id: uid of the author
        receiver_id: uid of the other participant
        body: Text, may be blank when attachment_url is set
        attachment_url: Blob-store URL of an attached image
    """

    sender_id: str
    receiver_id: str
    body: str = ""
    attachment_url: str | None = None


class ConversationStore(BaseService):
    """
    Async store for conversations and their ordered message logs.

    Args:
        channel_layer: Channel layer for fan-out wake-ups; defaults to the
            configured layer
        clock: Returns the current aware datetime; injectable for tests
    """

    def __init__(self, channel_layer=None, clock: Callable[[], datetime] = timezone.now):
        self._channel_layer = channel_layer
        self.clock = clock

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    # =========================================================================
    # Append
    # =========================================================================

    def clean_draft(self, conversation_id: str, draft: MessageDraft) -> MessageDraft:
        """
        Validate a draft against its target conversation.

        Raises:
            ValidationError: blank/invalid participants, conversation id not
                derived from the participants, empty message, body too long
        """
        sender_id = clean_participant_id(draft.sender_id)
        receiver_id = clean_participant_id(draft.receiver_id)

        expected = conversation_id_for(sender_id, receiver_id)
        if conversation_id != expected:
            raise ValidationError(
                "Conversation id does not match the message participants",
                error_code="CONVERSATION_MISMATCH",
                details={"conversation_id": conversation_id, "expected": expected},
            )

        body = draft.body or ""
        if not body.strip():
            body = ""
        attachment_url = (draft.attachment_url or "").strip() or None

        if not body and not attachment_url:
            raise ValidationError(
                "Message needs text or an attachment",
                error_code="EMPTY_MESSAGE",
            )
        if len(body) > MESSAGE_CONFIG.MAX_BODY_LENGTH:
            raise ValidationError(
                f"Message exceeds {MESSAGE_CONFIG.MAX_BODY_LENGTH} characters",
                error_code="MESSAGE_TOO_LONG",
            )

        return MessageDraft(
            sender_id=sender_id,
            receiver_id=receiver_id,
            body=body,
            attachment_url=attachment_url,
        )

    def _append_locked(self, conversation_id: str, draft: MessageDraft) -> Message:
        user_lower, user_higher = sorted([draft.sender_id, draft.receiver_id])
        with self.atomic():
            conversation, created = (
                Conversation.objects.select_for_update().get_or_create(
                    id=conversation_id,
                    defaults={"user_lower": user_lower, "user_higher": user_higher},
                )
            )
            created_at = self.clock()
            if conversation.last_message_at and created_at < conversation.last_message_at:
                created_at = conversation.last_message_at

            message = Message.objects.create(
                conversation=conversation,
                sender_id=draft.sender_id,
                receiver_id=draft.receiver_id,
                body=draft.body,
                attachment_url=draft.attachment_url,
                created_at=created_at,
            )
            Conversation.objects.filter(pk=conversation.pk).update(
                last_message_at=created_at,
                updated_at=timezone.now(),
            )

        if created:
            self.get_logger().info(f"Started conversation {conversation_id}")
        return message

    async def append(self, conversation_id: str, draft: MessageDraft) -> Message:
        """
        Persist a message and return the stored record.

        Raises:
            ValidationError: the draft is rejected; nothing is persisted
            TransientIOError: the store is unavailable; safe to retry
        """
        draft = self.clean_draft(conversation_id, draft)

        with self.translate_io_errors("append message"):
            message = await sync_to_async(self._append_locked)(conversation_id, draft)

        self.get_logger().info(
            f"Appended message {message.id} to {conversation_id} "
            f"({message.sender_id} -> {message.receiver_id})"
        )
        await self._announce(message)
        return message

    async def _announce(self, message: Message) -> None:
        try:
            await self.channel_layer.group_send(
                group_name_for(message.conversation_id),
                {
                    "type": "conversation.appended",
                    "conversation_id": message.conversation_id,
                    "message_id": message.id,
                },
            )
        except Exception:
            # Live subscribers catch up on the next wake-up or on reconnect
            self.get_logger().exception(
                f"Fan-out wake-up failed for message {message.id}"
            )

        responses = await message_appended.asend_robust(sender=Message, message=message)
        for receiver, response in responses:
            if isinstance(response, Exception):
                self.get_logger().error(
                    f"message_appended receiver {receiver!r} failed for "
                    f"message {message.id}: {response!r}"
                )

    # =========================================================================
    # Reads
    # =========================================================================

    async def history(
        self,
        conversation_id: str,
        after_id: int | None = None,
        limit: int | None = None,
    ) -> list[Message]:
        """
        Messages of a conversation in (created_at, id) order.

        Args:
            after_id: Only messages appended after this message id
            limit: Maximum number of messages (default: everything)
        """
        participants_of(conversation_id)
        queryset = Message.objects.filter(conversation_id=conversation_id)
        if after_id is not None:
            queryset = queryset.filter(id__gt=after_id)
        queryset = queryset.order_by("created_at", "id")
        if limit is not None:
            queryset = queryset[: max(0, min(limit, MESSAGE_CONFIG.MAX_HISTORY_LIMIT))]

        with self.translate_io_errors("read history"):
            return [message async for message in queryset]

    async def subscribe(self, conversation_id: str) -> Subscription:
        """
        Open a replay-then-live subscription to a conversation.

        The returned Subscription first yields the full ordered history, then
        every message appended afterwards. Close it (or use it as an async
        context manager) to cancel.
        """
        participants_of(conversation_id)
        subscription = Subscription(self, conversation_id, self.channel_layer)
        await subscription.open()
        return subscription

    async def conversations_for(self, uid: str) -> list[Conversation]:
        """Conversations uid takes part in, most recently active first."""
        uid = clean_participant_id(uid)
        queryset = Conversation.objects.filter(
            Q(user_lower=uid) | Q(user_higher=uid)
        ).order_by(F("last_message_at").desc(nulls_last=True), "id")
        with self.translate_io_errors("list conversations"):
            return [conversation async for conversation in queryset]
