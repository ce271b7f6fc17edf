"""
Tests for notification signal handlers.
"""

import pytest
from asgiref.sync import async_to_sync

from chat.models import Message
from chat.services import ConversationStore, MessageDraft
from core.exceptions import ValidationError


class TestQueueMessagePush:
    def test_append_queues_one_push(self, ana, beto, channel_layer, queued_pushes):
        store = ConversationStore(channel_layer=channel_layer)

        message = async_to_sync(store.append)(
            "u1_u2", MessageDraft(sender_id="u1", receiver_id="u2", body="hola")
        )

        queued_pushes.assert_called_once_with(message.id)

    def test_broker_outage_does_not_fail_append(self, ana, beto, channel_layer, queued_pushes):
        queued_pushes.side_effect = ConnectionError("broker down")
        store = ConversationStore(channel_layer=channel_layer)

        message = async_to_sync(store.append)(
            "u1_u2", MessageDraft(sender_id="u1", receiver_id="u2", body="hola")
        )

        assert Message.objects.filter(id=message.id).exists()

    def test_rejected_append_queues_nothing(self, ana, channel_layer, queued_pushes):
        store = ConversationStore(channel_layer=channel_layer)

        with pytest.raises(ValidationError):
            async_to_sync(store.append)(
                "u1_u2", MessageDraft(sender_id="u1", receiver_id="u2", body="")
            )

        queued_pushes.assert_not_called()
