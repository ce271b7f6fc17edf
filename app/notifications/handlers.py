"""
Signal handlers for cross-app notification events.

This module listens for events from other apps and queues the matching
notification work.

Related files:
    - tasks.py: dispatch_message_push
    - apps.py: Handler registration

Event Sources:
    - chat: chat.signals.message_appended, sent by ConversationStore.append
      after the message is stored and fanned out

Usage:
    Handlers are registered in apps.py when the app is ready.
"""

from __future__ import annotations

import logging

from django.dispatch import receiver

from chat.signals import message_appended

logger = logging.getLogger(__name__)


@receiver(message_appended, dispatch_uid="notifications.queue_message_push")
def queue_message_push(sender, message, **kwargs):
    """
    Queue the push alert for a newly appended message.

    A broker outage is logged and dropped: the message itself is already
    stored and delivered to live subscribers.
    """
    from notifications.tasks import dispatch_message_push

    try:
        dispatch_message_push.delay(message.id)
    except Exception:
        logger.exception(f"Could not queue push dispatch for message {message.id}")
