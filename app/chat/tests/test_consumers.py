"""
Tests for the chat WebSocket consumer.

The ASGI stack mirrors config/asgi.py: IdentityTokenAuthMiddleware around the
chat URL router. Each test drives one connection inside a single event loop.
"""

from asgiref.sync import async_to_sync
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from chat.consumers import ChatConsumer
from chat.middleware import IdentityTokenAuthMiddleware
from chat.presence import PresenceTracker
from chat.routing import websocket_urlpatterns
from chat.services import ConversationStore, MessageDraft
from chat.tests.conftest import wait_until


def make_application():
    return IdentityTokenAuthMiddleware(URLRouter(websocket_urlpatterns))


def register(identity_provider, profile):
    identity_provider.register(f"token-{profile.uid}", uid=profile.uid)
    return f"token-{profile.uid}"


class TestChatConsumer:
    def test_rejects_anonymous_connection(self, db):
        async def scenario():
            communicator = WebsocketCommunicator(make_application(), "/ws/chat/u2/")
            connected, code = await communicator.connect()
            await communicator.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, 4001)

    def test_rejects_unknown_token(self, db):
        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), "/ws/chat/u2/?token=forged"
            )
            connected, code = await communicator.connect()
            await communicator.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, 4001)

    def test_rejects_invalid_peer(self, ana, identity_provider):
        token = register(identity_provider, ana)

        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), f"/ws/chat/bad_peer/?token={token}"
            )
            connected, code = await communicator.connect()
            await communicator.disconnect()
            return connected, code

        assert async_to_sync(scenario)() == (False, 4000)

    def test_replays_history_and_acknowledges_sends(self, ana, beto, identity_provider):
        token = register(identity_provider, ana)
        async_to_sync(ConversationStore().append)(
            "u1_u2", MessageDraft(sender_id="u2", receiver_id="u1", body="hola Ana")
        )

        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), f"/ws/chat/u2/?token={token}&session=phone"
            )
            connected, _ = await communicator.connect()
            replayed = await communicator.receive_json_from(timeout=2)

            await communicator.send_json_to({"type": "message", "body": "hola Beto"})
            frames = [
                await communicator.receive_json_from(timeout=2),
                await communicator.receive_json_from(timeout=2),
            ]
            await communicator.disconnect()
            return connected, replayed, frames

        connected, replayed, frames = async_to_sync(scenario)()

        assert connected is True
        assert replayed["type"] == "message"
        assert replayed["message"]["body"] == "hola Ana"
        by_type = {frame["type"]: frame for frame in frames}
        assert by_type["message"]["message"]["body"] == "hola Beto"
        assert by_type["sent"]["message_id"] == by_type["message"]["message"]["id"]

    def test_empty_message_returns_error_frame(self, ana, beto, identity_provider):
        token = register(identity_provider, ana)

        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), f"/ws/chat/u2/?token={token}"
            )
            await communicator.connect()
            await communicator.send_json_to({"type": "message", "body": ""})
            frame = await communicator.receive_json_from(timeout=2)
            await communicator.disconnect()
            return frame

        frame = async_to_sync(scenario)()

        assert frame["type"] == "error"
        assert frame["error_code"] == "EMPTY_MESSAGE"
        assert frame["retryable"] is False

    def test_presence_follows_connection(self, ana, beto, identity_provider):
        token = register(identity_provider, ana)

        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), f"/ws/chat/u2/?token={token}&session=phone"
            )
            await communicator.connect()
            while_connected = PresenceTracker.is_viewing("u1", "u1_u2")

            await communicator.send_json_to({"type": "presence", "active": False})
            await communicator.send_json_to({"type": "unknown"})
            await communicator.receive_json_from(timeout=2)
            while_backgrounded = PresenceTracker.is_viewing("u1", "u1_u2")

            await communicator.send_json_to({"type": "presence", "active": True})
            await communicator.send_json_to({"type": "unknown"})
            await communicator.receive_json_from(timeout=2)

            await communicator.disconnect()
            after_disconnect = PresenceTracker.is_viewing("u1", "u1_u2")
            return while_connected, while_backgrounded, after_disconnect

        assert async_to_sync(scenario)() == (True, False, False)

    def test_open_socket_refreshes_presence(self, ana, beto, identity_provider, monkeypatch):
        token = register(identity_provider, ana)
        refreshed = []
        original_refresh = PresenceTracker.refresh

        def counting_refresh(tracker):
            refreshed.append(tracker.session_id)
            return original_refresh(tracker)

        monkeypatch.setattr(ChatConsumer, "heartbeat_interval", 0.01)
        monkeypatch.setattr(PresenceTracker, "refresh", counting_refresh)

        async def scenario():
            communicator = WebsocketCommunicator(
                make_application(), f"/ws/chat/u2/?token={token}&session=phone"
            )
            await communicator.connect()
            await wait_until(lambda: len(refreshed) >= 2)
            still_viewing = PresenceTracker.is_viewing("u1", "u1_u2")
            await communicator.disconnect()
            return still_viewing

        assert async_to_sync(scenario)() is True
        assert set(refreshed) == {"phone"}
        assert PresenceTracker.is_viewing("u1", "u1_u2") is False
