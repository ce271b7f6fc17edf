"""
Factory Boy factories for chat models.

Provides realistic test data generation for:
- Conversation: A participant pair keyed by its canonical id
- Message: A stored message with a server timestamp

Usage:
    from chat.tests.factories import ConversationFactory, MessageFactory

    conversation = ConversationFactory(user_lower="u1", user_higher="u2")
    MessageFactory(conversation=conversation, sender_id="u1", receiver_id="u2")

    # A message with only an image
    MessageFactory(body="", attachment_url="https://cdn.example.com/a.png")
"""

import factory
from django.utils import timezone

from chat.identifiers import conversation_id_for
from chat.models import Conversation, Message


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Conversation model.

    The id is always derived from the participant pair.
    """

    class Meta:
        model = Conversation
        django_get_or_create = ("id",)

    user_lower = "u1"
    user_higher = "u2"
    id = factory.LazyAttribute(lambda o: conversation_id_for(o.user_lower, o.user_higher))
    last_message_at = None


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Examples:
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=conversation, sender_id="u2", receiver_id="u1")
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    sender_id = factory.LazyAttribute(lambda o: o.conversation.user_lower)
    receiver_id = factory.LazyAttribute(lambda o: o.conversation.user_higher)
    body = factory.Faker("sentence")
    attachment_url = None
    created_at = factory.LazyFunction(timezone.now)
