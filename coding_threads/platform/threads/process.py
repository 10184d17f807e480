"""One supervised actor per conversation thread.

A ThreadProcess exclusively owns its Agent and working directory. Other
components only observe it through queries sent to its control mailbox, or
through the events it publishes on the notification bus.

Two loops run inside the process:
- the control loop answers queries one at a time
- the turn loop consumes queued user messages and runs one turn at a time,
  so two messages sent back to back never run over the same history
  concurrently

An unexpected exception in either loop crashes the process. Turn failures
reported by the engine do not: they are published as error events and the
partial conversation is kept.
"""

import asyncio
import contextvars
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from openinference.instrumentation import using_session

from coding_threads.platform.agent.engine import Agent, AgentStatus
from coding_threads.platform.agent.errors import TurnError
from coding_threads.platform.agent.tools import ToolContext
from coding_threads.platform.observability import (
    correlation_id_ctx,
    thread_name_ctx,
    use_correlation_id,
)
from coding_threads.platform.threads.bus import NotificationBus, ThreadEvent
from coding_threads.platform.threads.errors import (
    ThreadError,
    ThreadUnavailableError,
    WorkingDirectoryError,
)

logger = logging.getLogger(__name__)

# Builds the conversation a fresh thread starts with
type AgentFactory = Callable[[str, ToolContext], Agent]


class ThreadStatus(StrEnum):
    STARTING = "starting"
    READY = "ready"
    PROCESSING = "processing"
    FAILED = "failed"
    STOPPED = "stopped"


class RestartPolicy(StrEnum):
    """What the supervisor does with a crashed thread.

    TRANSIENT: restart it as a new, empty thread under the same name.
    TEMPORARY: remove it.
    """

    TRANSIENT = "transient"
    TEMPORARY = "temporary"


class Query(StrEnum):
    AGENT = "agent"
    WORKING_DIR = "working_dir"
    INFO = "info"
    PING = "ping"


@dataclass(frozen=True)
class ThreadInfo:
    """Listing entry of a thread.

    Attributes:
        name: Thread name
        working_dir: Absolute working directory of the thread
        status: Status at the time the thread answered
    """

    name: str
    working_dir: Path
    status: ThreadStatus = ThreadStatus.READY


@dataclass
class _Request:
    query: Query
    future: asyncio.Future = field(default_factory=lambda: asyncio.get_running_loop().create_future())


class ThreadProcess:
    """Actor owning one thread's conversation."""

    def __init__(
        self,
        name: str,
        working_dir: Path,
        agent_factory: AgentFactory,
        bus: NotificationBus,
    ):
        self.name = name
        self.working_dir = working_dir
        self.status = ThreadStatus.STARTING
        self._agent_factory = agent_factory
        self._bus = bus
        self._agent: Agent | None = None
        self._mailbox: asyncio.Queue[_Request] = asyncio.Queue()
        # Queued user messages with the correlation ID of the request that sent them
        self._turns: asyncio.Queue[tuple[str, str | None]] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    @property
    def task(self) -> asyncio.Task | None:
        """The running actor task, None until started."""
        return self._task

    @property
    def pending_turns(self) -> int:
        return self._turns.qsize()

    async def start(self) -> None:
        """Validate the working directory, build the agent and start the loops.

        Raises:
            WorkingDirectoryError: If the working directory is unusable
            ThreadError: If the agent could not be built
        """
        if not self.working_dir.exists():
            self.status = ThreadStatus.FAILED
            raise WorkingDirectoryError(self.working_dir)
        if not self.working_dir.is_dir():
            self.status = ThreadStatus.FAILED
            raise WorkingDirectoryError(self.working_dir, "is not a directory")

        context = ToolContext(working_dir=self.working_dir, thread_name=self.name)
        try:
            self._agent = self._agent_factory(self.name, context)
        except Exception as e:
            self.status = ThreadStatus.FAILED
            raise ThreadError(f"Failed to build agent for thread '{self.name}': {e}") from e

        # A fresh context, so the request that started the thread does not tag its logs
        self._task = asyncio.create_task(
            self._run(), name=f"thread:{self.name}", context=contextvars.Context()
        )
        self.status = ThreadStatus.READY
        logger.info("Thread '%s' started in %s", self.name, self.working_dir)

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.debug("Thread '%s' had crashed before stop", self.name)
        self.status = ThreadStatus.STOPPED

    def send(self, text: str) -> None:
        """Queue a user message for the turn loop and return immediately.

        Raises:
            ThreadError: If the process is not running
        """
        if self._task is None or self._task.done():
            raise ThreadError(f"Thread '{self.name}' is not running")
        self._turns.put_nowait((text, correlation_id_ctx.get()))

    async def call(self, query: Query, timeout: float) -> Any:
        """Send a query to the control mailbox and wait for the answer.

        Raises:
            ThreadUnavailableError: If no answer arrives within timeout
        """
        if self._task is None or self._task.done():
            raise ThreadUnavailableError(self.name, timeout)
        request = _Request(query)
        self._mailbox.put_nowait(request)
        try:
            return await asyncio.wait_for(request.future, timeout)
        except TimeoutError as e:
            raise ThreadUnavailableError(self.name, timeout) from e

    async def _run(self) -> None:
        thread_name_ctx.set(self.name)
        async with asyncio.TaskGroup() as tg:
            tg.create_task(self._control_loop())
            tg.create_task(self._turn_loop())

    async def _control_loop(self) -> None:
        while True:
            request = await self._mailbox.get()
            # The caller may have given up already
            if request.future.done():
                continue
            request.future.set_result(self._answer(request.query))

    def _answer(self, query: Query) -> Any:
        match query:
            case Query.AGENT:
                return self._agent
            case Query.WORKING_DIR:
                return self.working_dir
            case Query.INFO:
                return ThreadInfo(self.name, self.working_dir, self.status)
            case Query.PING:
                return True
        raise ValueError(f"Unknown query: {query}")

    async def _turn_loop(self) -> None:
        while True:
            text, correlation_id = await self._turns.get()
            try:
                with use_correlation_id(correlation_id):
                    await self._process(text)
            finally:
                self._turns.task_done()

    async def _process(self, text: str) -> None:
        assert self._agent is not None
        self.status = ThreadStatus.PROCESSING
        self._agent = self._agent.append(text).with_status(AgentStatus.RUNNING)
        self._bus.publish(self.name, ThreadEvent.updated(self.name, self._agent))

        try:
            with using_session(self.name):
                result = await self._agent.run_turn()
        except TurnError as e:
            logger.warning("Turn failed in thread '%s': %s", self.name, e.reason)
            self._agent = e.agent
            self._bus.publish(self.name, ThreadEvent.failed(self.name, e.reason, e.agent))
        else:
            self._agent = result.agent
            self._bus.publish(self.name, ThreadEvent.updated(self.name, result.agent))
        finally:
            self.status = ThreadStatus.READY
