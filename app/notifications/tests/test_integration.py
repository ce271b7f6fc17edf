"""
End-to-end tests for the message journey.

Ana sends Beto a message over the REST API; the append fans out, the
message_appended signal queues the push task (eager in tests) and the
dispatcher alerts Beto's devices through a recording transport.
"""

from unittest.mock import patch

import pytest
from rest_framework import status

from authentication.models import DeviceToken
from chat.presence import PresenceTracker
from notifications.models import MessageNotification, NotificationStatus, SkipReason
from notifications.tests.fakes import FakePushTransport

MESSAGES_URL = "/api/v1/chat/conversations/u2/messages/"


@pytest.fixture
def recording_transport():
    transport = FakePushTransport()
    with patch("notifications.services.get_push_transport", return_value=transport):
        yield transport


@pytest.mark.django_db
class TestMessageJourney:
    """
    Why it matters: this is the path every chat message takes; the pieces
    are only useful if they line up.
    """

    def test_message_alerts_receivers_devices(self, client_for, ana, beto, recording_transport):
        response = client_for(ana).post(MESSAGES_URL, {"body": "hola"}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        [request] = recording_transport.requests
        assert sorted(request.tokens) == ["tA", "tB"]
        assert request.title == "Ana"
        assert request.body == "hola"
        record = MessageNotification.objects.get(message_id=response.data["id"])
        assert record.status == NotificationStatus.SENT

    def test_receiver_reading_the_chat_gets_no_alert(
        self, client_for, ana, beto, recording_transport
    ):
        PresenceTracker("u2", "phone").set_active("u1_u2")

        response = client_for(ana).post(MESSAGES_URL, {"body": "hola"}, format="json")

        assert recording_transport.requests == []
        record = MessageNotification.objects.get(message_id=response.data["id"])
        assert record.skipped_reason == SkipReason.RECIPIENT_VIEWING

    def test_dead_token_is_pruned_after_a_send(self, client_for, ana, beto):
        transport = FakePushTransport(failing_tokens={"tA"})
        with patch("notifications.services.get_push_transport", return_value=transport):
            client_for(ana).post(MESSAGES_URL, {"body": "hola"}, format="json")

        assert list(
            DeviceToken.objects.filter(profile_id="u2").values_list("token", flat=True)
        ) == ["tB"]

    def test_token_registered_before_sign_in_receives_alerts(
        self, api_client, client_for, ana, identity_provider, recording_transport
    ):
        api_client.post(
            "/api/v1/notifications/devices/tokens/",
            {"token": "early", "installation_id": "beto-phone"},
            format="json",
        )
        identity_provider.register("beto-id-token", uid="u2", display_name="Beto")
        api_client.post(
            "/api/v1/auth/session/",
            {"id_token": "beto-id-token", "installation_id": "beto-phone"},
            format="json",
        )

        client_for(ana).post(MESSAGES_URL, {"body": "hola"}, format="json")

        assert recording_transport.sent_tokens == ["early"]
