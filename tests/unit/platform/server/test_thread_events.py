"""Unit tests for the thread events stream and its subscription lifetime."""

import asyncio

import pytest

from coding_threads.platform.server.routes.threads import thread_events
from coding_threads.platform.threads import ThreadEvent
from coding_threads.platform.threads.errors import ThreadNotFoundError


class FakeRequest:
    """Request that reports a disconnect after a number of checks."""

    def __init__(self, connected_checks: int = 100):
        self.connected_checks = connected_checks

    async def is_disconnected(self) -> bool:
        self.connected_checks -= 1
        return self.connected_checks < 0


async def next_chunk(body) -> str:
    return await anext(body)


@pytest.fixture
async def thread_name(thread_manager) -> str:
    return await thread_manager.start_thread("red-sweaty-potato")


class TestThreadEvents:
    async def test_unknown_thread(self, thread_manager, notification_bus):
        with pytest.raises(ThreadNotFoundError):
            await thread_events("ghost", FakeRequest(), thread_manager, notification_bus)

    async def test_no_subscription_until_streaming(
        self, thread_manager, notification_bus, thread_name
    ):
        """A response that is never streamed leaves no subscriber behind."""
        response = await thread_events(thread_name, FakeRequest(), thread_manager, notification_bus)

        assert notification_bus.subscriber_count(thread_name) == 0
        await response.body_iterator.aclose()
        assert notification_bus.subscriber_count(thread_name) == 0

    async def test_streams_events_then_unsubscribes_on_disconnect(
        self, thread_manager, notification_bus, thread_name, eventually
    ):
        request = FakeRequest(connected_checks=1)
        response = await thread_events(thread_name, request, thread_manager, notification_bus)
        body = response.body_iterator

        chunk = asyncio.create_task(next_chunk(body))
        await eventually(lambda: notification_bus.subscriber_count(thread_name) == 1)
        notification_bus.publish(thread_name, ThreadEvent.restarted(thread_name))

        assert (await chunk).startswith("event: restarted\n")
        with pytest.raises(StopAsyncIteration):
            await anext(body)
        assert notification_bus.subscriber_count(thread_name) == 0

    async def test_cancelled_stream_unsubscribes(
        self, thread_manager, notification_bus, thread_name, eventually
    ):
        """A client dropping the connection mid-wait releases its queue."""
        response = await thread_events(thread_name, FakeRequest(), thread_manager, notification_bus)

        chunk = asyncio.create_task(next_chunk(response.body_iterator))
        await eventually(lambda: notification_bus.subscriber_count(thread_name) == 1)
        chunk.cancel()
        with pytest.raises(asyncio.CancelledError):
            await chunk

        assert notification_bus.subscriber_count(thread_name) == 0
