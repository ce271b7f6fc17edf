"""
Tests for push transports.

firebase_admin.messaging.send_each_for_multicast is patched; messages are
still built with the real firebase_admin types.
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from core.exceptions import PermissionDeniedError, TransientIOError
from notifications.tests.fakes import FakePushTransport
from notifications.transport import (
    FirebasePushTransport,
    LoggingPushTransport,
    PushRequest,
    PushTransport,
    get_push_transport,
)

REQUEST = PushRequest(
    tokens=["tA", "tB"],
    title="Ana",
    body="hola",
    data={"senderId": "u1", "conversationId": "u1_u2"},
)


def batch(*responses):
    return SimpleNamespace(
        responses=list(responses),
        success_count=sum(1 for r in responses if r.success),
        failure_count=sum(1 for r in responses if not r.success),
    )


def ok():
    return SimpleNamespace(success=True, exception=None)


def rejected(error):
    return SimpleNamespace(success=False, exception=error)


@pytest.fixture
def send_each():
    with patch("notifications.transport.messaging.send_each_for_multicast") as mock_send:
        yield mock_send


class TestFirebasePushTransport:
    def test_builds_one_multicast(self, send_each):
        send_each.return_value = batch(ok(), ok())
        app = object()

        FirebasePushTransport(app=app).send_multicast(REQUEST)

        message = send_each.call_args.args[0]
        assert message.tokens == ["tA", "tB"]
        assert message.notification.title == "Ana"
        assert message.notification.body == "hola"
        assert message.data == {"senderId": "u1", "conversationId": "u1_u2"}
        assert send_each.call_args.kwargs["app"] is app
        assert send_each.call_args.kwargs["dry_run"] is False

    def test_without_collapse_key_no_platform_config(self, send_each):
        send_each.return_value = batch(ok(), ok())

        FirebasePushTransport(app=object()).send_multicast(REQUEST)

        message = send_each.call_args.args[0]
        assert message.android is None
        assert message.apns is None

    def test_collapse_key_reaches_android_and_apns(self, send_each):
        send_each.return_value = batch(ok(), ok())
        request = PushRequest(
            tokens=["tA", "tB"],
            title="Ana",
            body="hola",
            data={"messageId": "42"},
            collapse_key="message:42",
        )

        FirebasePushTransport(app=object()).send_multicast(request)

        message = send_each.call_args.args[0]
        assert message.data == {"messageId": "42"}
        assert message.android.collapse_key == "message:42"
        assert message.android.notification.tag == "message:42"
        assert message.apns.headers == {"apns-collapse-id": "message:42"}

    def test_maps_per_token_results_in_order(self, send_each):
        send_each.return_value = batch(
            rejected(messaging.UnregisteredError("token gone")), ok()
        )

        results = FirebasePushTransport(app=object()).send_multicast(REQUEST)

        assert [(r.token, r.success) for r in results] == [("tA", False), ("tB", True)]
        assert results[0].error == "NOT_FOUND"

    def test_no_tokens_skips_the_call(self, send_each):
        request = PushRequest(tokens=[], title="Ana", body="hola")

        assert FirebasePushTransport(app=object()).send_multicast(request) == []
        send_each.assert_not_called()

    def test_unavailable_is_transient(self, send_each):
        send_each.side_effect = firebase_exceptions.UnavailableError("fcm down")

        with pytest.raises(TransientIOError) as exc_info:
            FirebasePushTransport(app=object()).send_multicast(REQUEST)

        assert exc_info.value.error_code == "PUSH_TRANSPORT_UNAVAILABLE"

    def test_sender_mismatch_is_permanent(self, send_each):
        send_each.side_effect = messaging.SenderIdMismatchError("wrong sender")

        with pytest.raises(PermissionDeniedError) as exc_info:
            FirebasePushTransport(app=object()).send_multicast(REQUEST)

        assert exc_info.value.error_code == "PUSH_SENDER_REJECTED"

    def test_permission_denied_code_is_permanent(self, send_each):
        send_each.side_effect = firebase_exceptions.PermissionDeniedError("no access")

        with pytest.raises(PermissionDeniedError):
            FirebasePushTransport(app=object()).send_multicast(REQUEST)


class TestLoggingPushTransport:
    def test_accepts_every_token(self):
        results = LoggingPushTransport().send_multicast(REQUEST)

        assert [r.success for r in results] == [True, True]


class TestGetPushTransport:
    def test_uses_configured_class(self, settings):
        settings.PUSH_TRANSPORT = "notifications.transport.FirebasePushTransport"

        assert isinstance(get_push_transport(), FirebasePushTransport)

    def test_fakes_satisfy_the_protocol(self):
        assert isinstance(FakePushTransport(), PushTransport)
        assert isinstance(LoggingPushTransport(), PushTransport)
