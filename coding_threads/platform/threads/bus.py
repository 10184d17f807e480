"""In-process notification bus.

One topic per thread, named "thread:<name>". Each subscriber owns a bounded
asyncio.Queue. Publishing never blocks: an event is put on every subscriber
queue of the topic and dropped for subscribers whose queue is full.

Delivery is at-most-once and ordered per topic. Nothing is retained, a
subscriber only sees events published after it subscribed.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from coding_threads.platform.agent.messages import message_to_dict
from coding_threads.platform.threads.metrics import notifications_dropped_counter

if TYPE_CHECKING:
    from coding_threads.platform.agent.engine import Agent

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


def thread_topic(thread_name: str) -> str:
    return f"thread:{thread_name}"


class EventKind(StrEnum):
    UPDATED = "updated"
    ERROR = "error"
    RESTARTED = "restarted"


@dataclass(frozen=True)
class ThreadEvent:
    """A change of a thread's state.

    Attributes:
        kind: What happened
        thread_name: Thread the event belongs to
        agent: Conversation snapshot (updated and error events)
        error: Human-readable failure description (error events)
    """

    kind: EventKind
    thread_name: str
    agent: "Agent | None" = None
    error: str | None = None

    @property
    def topic(self) -> str:
        return thread_topic(self.thread_name)

    @classmethod
    def updated(cls, thread_name: str, agent: "Agent") -> "ThreadEvent":
        return cls(EventKind.UPDATED, thread_name, agent=agent)

    @classmethod
    def failed(cls, thread_name: str, error: str, agent: "Agent | None" = None) -> "ThreadEvent":
        return cls(EventKind.ERROR, thread_name, agent=agent, error=error)

    @classmethod
    def restarted(cls, thread_name: str) -> "ThreadEvent":
        return cls(EventKind.RESTARTED, thread_name)


def event_to_dict(event: ThreadEvent) -> dict[str, Any]:
    """Convert a ThreadEvent to a dictionary for JSON serialization."""
    result: dict[str, Any] = {
        "kind": str(event.kind),
        "thread": event.thread_name,
        "topic": event.topic,
    }
    if event.agent is not None:
        result["status"] = str(event.agent.status)
        result["messages"] = [message_to_dict(m) for m in event.agent.messages]
    if event.error is not None:
        result["error"] = event.error
    return result


class Subscription:
    """A subscriber's view of one topic.

    Iterate it to receive events, close it (or leave its ``with`` block) to
    unsubscribe.

    Usage:
        ```
        with bus.subscribe("red-sweaty-potato") as subscription:
            async for event in subscription:
                ...
        ```
    """

    def __init__(self, bus: "NotificationBus", topic: str, maxsize: int):
        self.bus = bus
        self.topic = topic
        self.queue: asyncio.Queue[ThreadEvent] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def get(self) -> ThreadEvent:
        return await self.queue.get()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.bus._unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ThreadEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()


class NotificationBus:
    """Topic-keyed fan-out of thread events to subscriber queues."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(self, thread_name: str, maxsize: int | None = None) -> Subscription:
        subscription = Subscription(self, thread_topic(thread_name), maxsize or self.queue_size)
        self._subscribers.setdefault(subscription.topic, []).append(subscription)
        return subscription

    def publish(self, thread_name: str, event: ThreadEvent) -> int:
        """Deliver an event to the current subscribers of the thread's topic.

        Returns:
            Number of subscribers the event was delivered to
        """
        delivered = 0
        for subscription in list(self._subscribers.get(thread_topic(thread_name), ())):
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                notifications_dropped_counter.labels(str(event.kind)).inc()
                logger.warning(
                    "Dropping '%s' event for %s: subscriber queue is full",
                    event.kind,
                    subscription.topic,
                )
            else:
                delivered += 1
        return delivered

    def subscriber_count(self, thread_name: str) -> int:
        return len(self._subscribers.get(thread_topic(thread_name), ()))

    def _unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._subscribers.pop(subscription.topic, None)
