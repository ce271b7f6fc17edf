"""
Conversation store models.

This module defines:
- Conversation: One row per participant pair, keyed by the canonical pair id
- Message: Immutable, ordered entries of a conversation's log

Ordering:
    Messages are ordered by (created_at, id). created_at is assigned by the
    conversation store while holding the conversation row lock and is never
    earlier than the previous message's, so append order and time order
    agree; id breaks ties between messages stamped in the same instant.

Related files:
    - identifiers.py: conversation_id_for() and participant validation
    - services.py: ConversationStore (append, history, subscribe)
"""

from django.db import models
from django.db.models import F, Q

from core.models import BaseModel


class Conversation(BaseModel):
    """
    A 1:1 conversation.

    Created implicitly by its first message; it has no other lifecycle.

    Fields:
        id: Canonical pair id ("<lower uid>_<higher uid>")
        user_lower: Participant uid that sorts first
        user_higher: Participant uid that sorts second (equal for self-chats)
        last_message_at: created_at of the newest message, the ordering floor
            for the next append

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower <= user_higher): Canonical order
    """

    id = models.CharField(
        max_length=257,
        primary_key=True,
        help_text="Canonical conversation id derived from the participant pair",
    )
    user_lower = models.CharField(
        max_length=128,
        db_index=True,
        help_text="Participant uid that sorts first",
    )
    user_higher = models.CharField(
        max_length=128,
        db_index=True,
        help_text="Participant uid that sorts second",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp of the newest message",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower__lte=F("user_higher")),
                name="conversation_pair_canonical_order",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.id})"

    def peer_of(self, uid: str) -> str:
        """The other participant (uid itself for self-conversations)."""
        return self.user_higher if uid == self.user_lower else self.user_lower


class Message(models.Model):
    """
    A message in a conversation.

    Messages are immutable once appended: there is no edit or delete.

    Fields:
        conversation: Conversation this message belongs to
        sender_id: uid of the author
        receiver_id: uid of the other participant
        body: Text content (may be empty when an attachment is present)
        attachment_url: Blob-store URL of an attached image
        created_at: Server-assigned ordering timestamp
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )
    sender_id = models.CharField(
        max_length=128,
        db_index=True,
        help_text="uid of the sender",
    )
    receiver_id = models.CharField(
        max_length=128,
        db_index=True,
        help_text="uid of the receiver",
    )
    body = models.TextField(
        blank=True,
        default="",
        help_text="Message text",
    )
    attachment_url = models.URLField(
        max_length=2048,
        null=True,
        blank=True,
        help_text="Attached image URL",
    )
    created_at = models.DateTimeField(
        help_text="Server-assigned timestamp, non-decreasing within a conversation",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_order_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(body="") | Q(attachment_url__isnull=False),
                name="message_has_body_or_attachment",
            ),
        ]

    def __str__(self) -> str:
        return f"Message({self.id}) {self.sender_id} -> {self.receiver_id}"

    @property
    def has_attachment(self) -> bool:
        return bool(self.attachment_url)

    def to_event(self) -> dict:
        """JSON-safe representation sent over WebSockets and used by push data."""
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "body": self.body,
            "attachment_url": self.attachment_url,
            "created_at": self.created_at.isoformat(),
        }
