"""
Alert composition for new chat messages.

An Alert is what the receiver's notification tray shows: the sender's name as
title, a one-line body, and a tap target that opens the conversation.

Body rules (first match wins):
    1. message has an attachment  -> "Te envió una imagen"
    2. trimmed text is non-empty  -> the trimmed text
    3. otherwise                  -> "Tienes un nuevo mensaje"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from notifications.constants import ALERT_COPY

if TYPE_CHECKING:
    from chat.models import Message


@dataclass(frozen=True)
class TapTarget:
    conversation_id: str
    peer_name: str


@dataclass(frozen=True)
class Alert:
    """Structured alert handed to the device notification tray."""

    title: str
    body: str
    tap_target: TapTarget

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "tapTarget": {
                "conversationId": self.tap_target.conversation_id,
                "peerName": self.tap_target.peer_name,
            },
        }


def alert_body(body: str | None, attachment_url: str | None) -> str:
    if attachment_url:
        return ALERT_COPY.IMAGE_BODY
    text = (body or "").strip()
    return text or ALERT_COPY.FALLBACK_BODY


def compose_alert(message: Message, sender_name: str) -> Alert:
    """Build the alert the receiver of message should see."""
    return Alert(
        title=sender_name,
        body=alert_body(message.body, message.attachment_url),
        tap_target=TapTarget(
            conversation_id=message.conversation_id,
            peer_name=sender_name,
        ),
    )
