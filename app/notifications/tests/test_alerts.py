"""
Tests for alert composition.
"""

import pytest

from chat.models import Message
from notifications.alerts import alert_body, compose_alert


def unsaved_message(body="hola", attachment_url=None):
    return Message(
        conversation_id="u1_u2",
        sender_id="u1",
        receiver_id="u2",
        body=body,
        attachment_url=attachment_url,
    )


class TestAlertBody:
    def test_text_is_used_trimmed(self):
        assert alert_body("  hola  ", None) == "hola"

    def test_attachment_wins_over_text(self):
        assert alert_body("mira esto", "https://cdn.example.com/a.png") == "Te envió una imagen"

    @pytest.mark.parametrize("body", ["", "   ", None])
    def test_empty_text_falls_back(self, body):
        assert alert_body(body, None) == "Tienes un nuevo mensaje"


class TestComposeAlert:
    def test_title_is_sender_name(self):
        alert = compose_alert(unsaved_message(), "Ana")

        assert alert.title == "Ana"
        assert alert.body == "hola"

    def test_tap_target_opens_the_conversation(self):
        alert = compose_alert(unsaved_message(), "Ana")

        assert alert.to_dict() == {
            "title": "Ana",
            "body": "hola",
            "tapTarget": {"conversationId": "u1_u2", "peerName": "Ana"},
        }

    def test_image_message(self):
        alert = compose_alert(
            unsaved_message(body="", attachment_url="https://cdn.example.com/a.png"), "Ana"
        )

        assert alert.body == "Te envió una imagen"
