"""
Signals emitted by the conversation store.

message_appended:
    Sent once per successfully persisted message, after the transaction
    committed and after the fan-out wake-up. Receivers get `message`
    (chat.models.Message). Receiver failures are logged by the store and
    never fail the append.

Usage:
    from django.dispatch import receiver
    from chat.signals import message_appended

    @receiver(message_appended)
    def on_message(sender, message, **kwargs):
        ...
"""

from django.dispatch import Signal

message_appended = Signal()
