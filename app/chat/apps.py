"""
Chat application configuration.

This app provides the conversation store with:
- Deterministic 1:1 conversation ids
- Ordered, immutable message logs
- Replay-then-live subscriptions over Django Channels
- Per-session presence tracking
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
