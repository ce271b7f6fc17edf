"""
Tests for replay-then-live subscriptions.

Each scenario runs inside a single event loop (one async_to_sync call) so
the in-memory channel layer's queues stay bound to that loop.
"""

import asyncio

from asgiref.sync import async_to_sync

from chat.services import ConversationStore, MessageDraft
from chat.tests.conftest import wait_until


def draft(body, sender="u1", receiver="u2"):
    return MessageDraft(sender_id=sender, receiver_id=receiver, body=body)


class TestSubscription:
    """
    Scenario: Beto opens the conversation after Ana already wrote to him.

    Why it matters: a subscriber must see the full history first and then
    every later message exactly in append order, without gaps.
    """

    def test_replays_history_then_streams_live(self, db, channel_layer, conversation_id):
        store = ConversationStore(channel_layer=channel_layer)

        async def scenario():
            await store.append(conversation_id, draft("uno"))
            await store.append(conversation_id, draft("dos"))

            subscription = await store.subscribe(conversation_id)
            received = []

            async def consume():
                async for message in subscription:
                    received.append(message.body)

            task = asyncio.ensure_future(consume())
            await wait_until(lambda: len(received) == 2)

            await store.append(conversation_id, draft("tres", sender="u2", receiver="u1"))
            await wait_until(lambda: len(received) == 3)

            await subscription.close()
            await asyncio.wait_for(task, 1)
            return received

        assert async_to_sync(scenario)() == ["uno", "dos", "tres"]

    def test_burst_of_appends_arrives_in_order(self, db, channel_layer, conversation_id):
        store = ConversationStore(channel_layer=channel_layer)
        bodies = [f"m{i}" for i in range(5)]

        async def scenario():
            received = []
            async with await store.subscribe(conversation_id) as subscription:

                async def consume():
                    async for message in subscription:
                        received.append(message.body)

                task = asyncio.ensure_future(consume())
                for body in bodies:
                    await store.append(conversation_id, draft(body))
                await wait_until(lambda: len(received) == len(bodies))
            await asyncio.wait_for(task, 1)
            return received

        assert async_to_sync(scenario)() == bodies

    def test_other_conversations_do_not_leak_in(self, db, channel_layer, conversation_id):
        store = ConversationStore(channel_layer=channel_layer)

        async def scenario():
            received = []
            async with await store.subscribe(conversation_id) as subscription:

                async def consume():
                    async for message in subscription:
                        received.append(message.conversation_id)

                task = asyncio.ensure_future(consume())
                await store.append("u1_u3", draft("otra", receiver="u3"))
                await store.append(conversation_id, draft("esta"))
                await wait_until(lambda: len(received) == 1)
            await asyncio.wait_for(task, 1)
            return received

        assert async_to_sync(scenario)() == [conversation_id]

    def test_close_ends_a_blocked_iterator(self, db, channel_layer, conversation_id):
        store = ConversationStore(channel_layer=channel_layer)

        async def scenario():
            subscription = await store.subscribe(conversation_id)

            async def consume():
                return [message async for message in subscription]

            task = asyncio.ensure_future(consume())
            await asyncio.sleep(0.05)
            await subscription.close()
            await subscription.close()
            return await asyncio.wait_for(task, 1), subscription.closed

        messages, closed = async_to_sync(scenario)()

        assert messages == []
        assert closed is True

    def test_resubscribing_replays_everything(self, db, channel_layer, conversation_id):
        store = ConversationStore(channel_layer=channel_layer)

        async def scenario():
            await store.append(conversation_id, draft("uno"))
            first = await store.subscribe(conversation_id)
            await first.__anext__()
            await first.close()

            await store.append(conversation_id, draft("dos"))
            second = await store.subscribe(conversation_id)
            replayed = [(await second.__anext__()).body, (await second.__anext__()).body]
            await second.close()
            return replayed

        assert async_to_sync(scenario)() == ["uno", "dos"]
