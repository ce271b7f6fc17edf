"""
Factory Boy factories for notification models.

Provides test data generation for:
- MessageNotification: Push dispatch record of a chat message

Usage:
    from notifications.tests.factories import MessageNotificationFactory

    record = MessageNotificationFactory(message=message)
    sent = MessageNotificationFactory(message=message, status=NotificationStatus.SENT)
"""

import factory

from chat.tests.factories import MessageFactory
from notifications.constants import idempotency_key_for
from notifications.models import MessageNotification, NotificationStatus


class MessageNotificationFactory(factory.django.DjangoModelFactory):
    """Factory for MessageNotification model."""

    class Meta:
        model = MessageNotification
        django_get_or_create = ("idempotency_key",)

    message = factory.SubFactory(MessageFactory)
    idempotency_key = factory.LazyAttribute(lambda o: idempotency_key_for(o.message.id))
    recipient_id = factory.LazyAttribute(lambda o: o.message.receiver_id)
    status = NotificationStatus.PENDING
