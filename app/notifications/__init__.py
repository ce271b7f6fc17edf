"""
Notifications app: push alerts for chat messages and device-token lifecycle.

This app provides:
- PushDispatcher: Sends one multicast alert per appended message, skipping
  self messages, unknown receivers, receivers viewing the conversation and
  receivers without tokens; prunes tokens the transport rejects
- TokenLifecycleManager: Caches an installation's latest token and registers
  it with the profile (issue, rotate, attach after sign-in)
- MessageNotification: Per-message idempotency record
- dispatch_message_push: Celery task with bounded retries

Usage:
    from notifications.services import PushDispatcher

    result = await PushDispatcher().dispatch(message)
    if result.success:
        outcome = result.data
"""
