"""Thread management module.

This module runs many named conversations side by side:
- ThreadProcess: one actor per thread owning its conversation
- ThreadManager: name registry and one-for-one supervisor
- NotificationBus: per-thread topics broadcasting state changes
"""

from coding_threads.platform.threads.bus import (
    EventKind,
    NotificationBus,
    Subscription,
    ThreadEvent,
    event_to_dict,
    thread_topic,
)
from coding_threads.platform.threads.errors import (
    ThreadError,
    ThreadNameError,
    ThreadNotFoundError,
    ThreadUnavailableError,
    WorkingDirectoryError,
)
from coding_threads.platform.threads.manager import ThreadManager
from coding_threads.platform.threads.names import generate_name, validate_name
from coding_threads.platform.threads.process import (
    AgentFactory,
    RestartPolicy,
    ThreadInfo,
    ThreadProcess,
    ThreadStatus,
)

__all__ = [
    "AgentFactory",
    "EventKind",
    "NotificationBus",
    "RestartPolicy",
    "Subscription",
    "ThreadError",
    "ThreadEvent",
    "ThreadInfo",
    "ThreadManager",
    "ThreadNameError",
    "ThreadNotFoundError",
    "ThreadProcess",
    "ThreadStatus",
    "ThreadUnavailableError",
    "WorkingDirectoryError",
    "event_to_dict",
    "generate_name",
    "thread_topic",
    "validate_name",
]
