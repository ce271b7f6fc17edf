"""
Test configuration and fixtures for notification tests.

This module provides:
- Ana (u1) and Beto (u2) profiles, Beto with two device tokens
- A stored message from Ana to Beto
- A PushDispatcher wired to a recording transport

The queued_pushes fixture is not autouse: by default appended
messages are dispatched eagerly through the configured logging transport.

Usage:
    def test_example(dispatcher, push_transport, message):
        async_to_sync(dispatcher.dispatch)(message)
        assert push_transport.requests
"""

from unittest.mock import patch

import pytest

from authentication.tests.factories import DeviceTokenFactory, ProfileFactory
from chat.tests.factories import ConversationFactory, MessageFactory
from notifications.services import PushDispatcher
from notifications.tests.fakes import FakePushTransport


@pytest.fixture
def beto(db):
    """Overrides the project fixture: receiver u2 with tokens tA and tB."""
    profile = ProfileFactory(uid="u2", display_name="Beto")
    DeviceTokenFactory(profile=profile, token="tA")
    DeviceTokenFactory(profile=profile, token="tB")
    return profile


@pytest.fixture
def conversation(db):
    return ConversationFactory(user_lower="u1", user_higher="u2")


@pytest.fixture
def message(conversation, ana, beto):
    """Ana -> Beto: "hola"."""
    return MessageFactory(
        conversation=conversation, sender_id="u1", receiver_id="u2", body="hola"
    )


@pytest.fixture
def push_transport():
    return FakePushTransport()


@pytest.fixture
def dispatcher(push_transport):
    return PushDispatcher(transport=push_transport)


@pytest.fixture
def queued_pushes():
    """Capture dispatch_message_push.delay calls instead of running them."""
    with patch("notifications.tasks.dispatch_message_push.delay") as mock_delay:
        yield mock_delay
