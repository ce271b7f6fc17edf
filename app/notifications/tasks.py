"""
Celery tasks for push notification delivery.

Tasks:
    dispatch_message_push: Send the push alert for one appended message

Design:
    - Tasks receive message_id instead of the Message instance
    - PushDispatcher records the outcome on MessageNotification, so
      re-running the task for a sent or skipped message is a no-op
    - Only retryable failures (TransientIOError) are retried, following
      core.retry.RetryPolicy.from_settings(): 3 attempts in total, 1.5s then
      3s apart by default
    - Permanent failures (sender rejected, bad data) are logged and dropped

Usage:
    from notifications.tasks import dispatch_message_push

    # Called by notifications.handlers on chat.signals.message_appended
    dispatch_message_push.delay(message.id)
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from celery import shared_task

from chat.models import Message
from core.retry import RetryPolicy
from notifications.services import PushDispatcher

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def dispatch_message_push(self, message_id: int) -> bool:
    """
    Send the push alert for a message.

    Flow:
        1. Fetch the message (gone -> nothing to do)
        2. PushDispatcher.dispatch (idempotent per message)
        3. On a retryable failure: retry with the policy's countdown until
           max_attempts is reached
        4. Otherwise: log and finish

    Args:
        message_id: Primary key of the chat Message

    Returns:
        True if the alert was sent or deliberately skipped
    """
    try:
        message = Message.objects.get(pk=message_id)
    except Message.DoesNotExist:
        logger.warning(f"Push dispatch: message {message_id} no longer exists")
        return False

    result = async_to_sync(PushDispatcher().dispatch)(message)
    if result:
        return True

    attempt = self.request.retries + 1
    policy = RetryPolicy.from_settings()

    if result.retryable and attempt < policy.max_attempts:
        countdown = policy.delay_for(attempt)
        logger.warning(
            f"Push dispatch for message {message_id} failed on attempt {attempt} "
            f"({result.error_code}: {result.error}), retrying in {countdown:.1f}s"
        )
        raise self.retry(countdown=countdown, max_retries=policy.max_attempts - 1)

    logger.error(
        f"Push dispatch for message {message_id} failed after {attempt} attempt(s): "
        f"{result.error_code}: {result.error}"
    )
    return False
