"""
Push notification models.

This module defines the record that makes push dispatch idempotent:
- MessageNotification: One row per chat message that triggered a push

Design Decisions:
    - idempotency_key ("message:<id>") is unique, so a duplicated trigger for
      the same message finds the existing row instead of sending twice
    - recipient_id is a plain uid, not a FK: the receiver may not have a
      profile at all (that is a skip reason, not an integrity error)
    - Counters are per dispatch attempt; attempt_count accumulates

State Flow:
    PENDING -> SENT       (transport accepted at least the batch call)
    PENDING -> SKIPPED    (self message, unknown recipient, no tokens, viewing)
    PENDING -> FAILED     (whole batch failed; the task may retry)
    FAILED  -> SENT       (a later retry succeeded)

Usage:
    from notifications.models import MessageNotification, NotificationStatus

    MessageNotification.objects.filter(status=NotificationStatus.FAILED)
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel


# =============================================================================
# Enums
# =============================================================================


class NotificationStatus(models.TextChoices):
    """Status of a message's push dispatch."""

    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    SKIPPED = "skipped", "Skipped"
    FAILED = "failed", "Failed"


class SkipReason(models.TextChoices):
    """Standardized reasons for skipped dispatches."""

    SELF_MESSAGE = "self_message", "Sender is the receiver"
    RECIPIENT_NOT_FOUND = "recipient_not_found", "Recipient has no profile"
    RECIPIENT_VIEWING = "recipient_viewing", "Recipient has the conversation open"
    NO_DEVICE_TOKEN = "no_device_token", "No device token"


# =============================================================================
# Dispatch Record
# =============================================================================


class MessageNotification(BaseModel):
    """
    Push dispatch record for one chat message.

    Fields:
        idempotency_key: "message:<message id>", unique
        message: The message that triggered the push
        recipient_id: uid of the message receiver
        title: Rendered alert title (sender name)
        body: Rendered alert body
        status: Current dispatch status
        skipped_reason: Why dispatch was skipped (if status=SKIPPED)
        success_count: Tokens the transport accepted on the last attempt
        failure_count: Tokens the transport rejected on the last attempt
        pruned_count: Tokens removed from the recipient after rejection
        attempt_count: Number of dispatch attempts that reached the transport
        last_error: Error of the last failed attempt
        sent_at: When the transport accepted the batch
    """

    idempotency_key = models.CharField(
        max_length=64,
        unique=True,
        help_text="Deduplication key, message:<message id>",
    )

    message = models.ForeignKey(
        "chat.Message",
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="Message that triggered the push",
    )

    recipient_id = models.CharField(
        max_length=128,
        db_index=True,
        help_text="uid of the message receiver",
    )

    title = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Rendered alert title",
    )

    body = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Rendered alert body",
    )

    status = models.CharField(
        max_length=20,
        choices=NotificationStatus.choices,
        default=NotificationStatus.PENDING,
        db_index=True,
        help_text="Current dispatch status",
    )

    skipped_reason = models.CharField(
        max_length=30,
        choices=SkipReason.choices,
        blank=True,
        default="",
        help_text="Reason if status=SKIPPED",
    )

    success_count = models.PositiveIntegerField(
        default=0,
        help_text="Tokens accepted by the transport",
    )

    failure_count = models.PositiveIntegerField(
        default=0,
        help_text="Tokens rejected by the transport",
    )

    pruned_count = models.PositiveIntegerField(
        default=0,
        help_text="Rejected tokens removed from the recipient",
    )

    attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of dispatch attempts",
    )

    last_error = models.TextField(
        blank=True,
        default="",
        help_text="Error message of the last failed attempt",
    )

    sent_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the transport accepted the batch",
    )

    class Meta:
        db_table = "notifications_message_notification"
        verbose_name = "message notification"
        verbose_name_plural = "message notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "-created_at"],
                name="notif_msg_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"MessageNotification({self.idempotency_key}, {self.status})"

    @property
    def is_final(self) -> bool:
        """Sent or skipped records are never dispatched again."""
        return self.status in (NotificationStatus.SENT, NotificationStatus.SKIPPED)
