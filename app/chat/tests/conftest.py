"""
Test configuration and fixtures for chat tests.

This module provides:
- A ConversationStore bound to an isolated in-memory channel layer
- The canonical id of the Ana/Beto conversation
- wait_until() for async scenarios that wait on fan-out

Usage:
    def test_example(conversation_store, conversation_id):
        message = async_to_sync(conversation_store.append)(
            conversation_id, MessageDraft("u1", "u2", body="hola")
        )
"""

import asyncio

import pytest

from chat.identifiers import conversation_id_for
from chat.services import ConversationStore


@pytest.fixture
def conversation_id():
    """Canonical id of the u1/u2 conversation."""
    return conversation_id_for("u1", "u2")


@pytest.fixture
def conversation_store(db, channel_layer):
    """ConversationStore fanning out to a per-test channel layer."""
    return ConversationStore(channel_layer=channel_layer)


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01):
    """Poll predicate() inside a running event loop until it is truthy."""

    async def poll():
        while not predicate():
            await asyncio.sleep(interval)

    await asyncio.wait_for(poll(), timeout)
