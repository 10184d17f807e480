"""Thread process manager.

Keeps the name -> ThreadProcess registry and supervises the processes one
for one: a crashed thread is handled by the configured RestartPolicy and
never affects the other threads.
"""

import asyncio
import logging
from collections import Counter, deque
from pathlib import Path
from time import monotonic
from typing import TYPE_CHECKING

from coding_threads.platform.agent.engine import Agent
from coding_threads.platform.threads.bus import NotificationBus, ThreadEvent
from coding_threads.platform.threads.errors import ThreadError, ThreadNotFoundError
from coding_threads.platform.threads.metrics import (
    thread_crashes_counter,
    thread_restarts_counter,
    threads_active_gauge,
)
from coding_threads.platform.threads.names import generate_name, validate_name
from coding_threads.platform.threads.process import (
    AgentFactory,
    Query,
    RestartPolicy,
    ThreadInfo,
    ThreadProcess,
    ThreadStatus,
)

if TYPE_CHECKING:
    from coding_threads.platform.settings import ThreadsSettings

logger = logging.getLogger(__name__)


class ThreadManager:
    """Registry and one-for-one supervisor of thread processes.

    All registry mutations happen under a single asyncio.Lock, which makes
    start_thread an atomic create-if-absent keyed by name.
    """

    def __init__(
        self,
        agent_factory: AgentFactory,
        bus: NotificationBus,
        settings: "ThreadsSettings",
    ):
        self._agent_factory = agent_factory
        self._bus = bus
        self._settings = settings
        self._processes: dict[str, ThreadProcess] = {}
        self._crashes: dict[str, deque[float]] = {}
        self._restarts: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._closing = False

    @property
    def bus(self) -> NotificationBus:
        return self._bus

    def __contains__(self, name: str) -> bool:
        return name in self._processes

    def __len__(self) -> int:
        return len(self._processes)

    @property
    def closing(self) -> bool:
        """True once shutdown started, no thread can be started anymore."""
        return self._closing

    def status_counts(self) -> dict[str, int]:
        """Number of threads per status, read without going through their mailboxes."""
        return dict(Counter(str(p.status) for p in self._processes.values()))

    async def start_thread(self, name: str | None = None, working_dir: Path | str | None = None) -> str:
        """Start a thread, or return the existing one with that name.

        Args:
            name: Thread name, generated when omitted
            working_dir: Directory the thread operates in, the configured
                default when omitted. Ignored when the thread already exists.

        Returns:
            The thread name

        Raises:
            ThreadNameError: If the name is malformed
            WorkingDirectoryError: If the working directory is unusable
        """
        if name is not None:
            validate_name(name)
        if self._closing:
            raise ThreadError("Thread manager is shutting down")

        async with self._lock:
            if name is None:
                name = self._fresh_name()
            elif name in self._processes:
                logger.debug("Thread '%s' already running", name)
                return name

            path = Path(working_dir) if working_dir is not None else self._settings.default_working_dir
            process = ThreadProcess(
                name, path.expanduser().absolute(), self._agent_factory, self._bus
            )
            await process.start()
            self._register(process)
            return name

    async def get_agent(self, name: str) -> Agent:
        """Return the thread's current conversation.

        Raises:
            ThreadNotFoundError: If no thread has that name
            ThreadUnavailableError: If the thread does not answer in time
        """
        return await self._lookup(name).call(Query.AGENT, self._settings.call_timeout)

    async def get_working_dir(self, name: str) -> Path:
        return await self._lookup(name).call(Query.WORKING_DIR, self._settings.call_timeout)

    async def send_message(self, name: str, text: str) -> None:
        """Queue a user message on the thread and return without waiting for the turn.

        The outcome is published on the notification bus.

        Raises:
            ThreadNotFoundError: If no thread has that name
        """
        self._lookup(name).send(text)

    async def list_threads(self) -> list[ThreadInfo]:
        """List threads that answer within the listing timeout.

        Unresponsive threads are omitted rather than failing the listing.
        """
        processes = list(self._processes.values())
        answers = await asyncio.gather(
            *(p.call(Query.INFO, self._settings.list_timeout) for p in processes),
            return_exceptions=True,
        )
        threads = []
        for process, answer in zip(processes, answers):
            if isinstance(answer, ThreadError):
                logger.debug("Omitting thread '%s' from listing: %s", process.name, answer)
                continue
            if isinstance(answer, BaseException):
                raise answer
            threads.append(answer)
        return threads

    def thread_status(self, name: str) -> ThreadStatus:
        """Snapshot of the thread's status that does not go through its mailbox."""
        return self._lookup(name).status

    async def stop_thread(self, name: str) -> None:
        async with self._lock:
            process = self._processes.pop(name, None)
            if process is None:
                raise ThreadNotFoundError(name)
            self._crashes.pop(name, None)
            threads_active_gauge.dec()
        await process.stop()
        logger.info("Thread '%s' stopped", name)

    async def shutdown(self) -> None:
        """Stop every thread and cancel pending restarts."""
        self._closing = True
        for task in list(self._restarts):
            task.cancel()
        async with self._lock:
            processes = list(self._processes.values())
            self._processes.clear()
            self._crashes.clear()
        await asyncio.gather(*(p.stop() for p in processes))
        threads_active_gauge.dec(len(processes))
        logger.info("Thread manager stopped %d threads", len(processes))

    def _lookup(self, name: str) -> ThreadProcess:
        process = self._processes.get(name)
        if process is None:
            raise ThreadNotFoundError(name)
        return process

    def _fresh_name(self) -> str:
        name = generate_name()
        while name in self._processes:
            name = generate_name()
        return name

    def _register(self, process: ThreadProcess) -> None:
        self._processes[process.name] = process
        threads_active_gauge.inc()
        assert process.task is not None
        process.task.add_done_callback(lambda task: self._on_exit(process, task))

    def _on_exit(self, process: ThreadProcess, task: asyncio.Task) -> None:
        if task.cancelled() or self._closing or self._processes.get(process.name) is not process:
            return

        error = task.exception()
        process.status = ThreadStatus.FAILED
        thread_crashes_counter.inc()
        logger.error("Thread '%s' crashed", process.name, exc_info=error)

        if self._settings.restart_policy is RestartPolicy.TEMPORARY:
            self._remove(process, f"Thread crashed: {error!r}")
            return

        crashes = self._crashes.setdefault(process.name, deque())
        now = monotonic()
        crashes.append(now)
        while crashes and now - crashes[0] > self._settings.restart_window:
            crashes.popleft()
        if len(crashes) > self._settings.max_restarts:
            self._remove(
                process,
                f"Thread crashed {len(crashes)} times within "
                f"{self._settings.restart_window}s, giving up",
            )
            return

        restart = asyncio.create_task(self._restart(process))
        self._restarts.add(restart)
        restart.add_done_callback(self._restarts.discard)

    def _remove(self, process: ThreadProcess, reason: str) -> None:
        del self._processes[process.name]
        self._crashes.pop(process.name, None)
        threads_active_gauge.dec()
        logger.error("Thread '%s' removed: %s", process.name, reason)
        self._bus.publish(process.name, ThreadEvent.failed(process.name, reason))

    async def _restart(self, crashed: ThreadProcess) -> None:
        async with self._lock:
            if self._processes.get(crashed.name) is not crashed:
                return
            replacement = ThreadProcess(
                crashed.name, crashed.working_dir, self._agent_factory, self._bus
            )
            try:
                await replacement.start()
            except ThreadError as e:
                self._remove(crashed, f"Restart failed: {e}")
                return
            self._processes[crashed.name] = replacement
            replacement_task = replacement.task
            assert replacement_task is not None
            replacement_task.add_done_callback(lambda task: self._on_exit(replacement, task))

        thread_restarts_counter.inc()
        logger.warning("Thread '%s' restarted with an empty conversation", crashed.name)
        self._bus.publish(crashed.name, ThreadEvent.restarted(crashed.name))
