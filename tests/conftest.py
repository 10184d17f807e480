"""Shared test fixtures.

This module provides fixtures used across unit and integration tests:
- Scripted chat providers replaying canned assistant messages
- Agent and tool builders
- Thread manager wiring with short timeouts
"""

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from coding_threads.platform.agent.config import AgentConfig
from coding_threads.platform.agent.engine import Agent
from coding_threads.platform.agent.messages import Message, ToolCall
from coding_threads.platform.agent.tools import (
    ExecutionMode,
    ToolContext,
    ToolDefinition,
    ToolParameter,
)
from coding_threads.platform.settings import ThreadsSettings
from coding_threads.platform.threads import NotificationBus, ThreadManager

# =============================================================================
# Provider Fixtures
# =============================================================================


class ScriptedProvider:
    """Chat provider replaying canned responses in order.

    A response may be an assistant Message, an exception to raise, or a
    callable receiving the history and returning a Message.
    """

    def __init__(self, responses: Sequence[Any], model_name: str = "scripted-model"):
        self._responses = list(responses)
        self._model_name = model_name
        self.calls: list[tuple[list[Message], list[str]]] = []

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def remaining(self) -> int:
        return len(self._responses)

    async def complete(
        self, messages: Sequence[Message], tools: Sequence[ToolDefinition]
    ) -> Message:
        self.calls.append((list(messages), [tool.name for tool in tools]))
        if not self._responses:
            raise RuntimeError("Scripted provider has no response left")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(messages)
        return response


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for scripted providers."""

    def factory(*responses: Any) -> ScriptedProvider:
        return ScriptedProvider(responses)

    return factory


@pytest.fixture
def tool_call_message() -> Callable[..., Message]:
    """Build an assistant message requesting tool calls.

    Each call is a (name, arguments) pair; call ids are derived from the position.
    """

    def factory(*calls: tuple[str, dict[str, Any]], text: str | None = None) -> Message:
        return Message.assistant(
            text=text,
            tool_calls=[
                ToolCall(call_id=f"call_{idx}", name=name, arguments=arguments)
                for idx, (name, arguments) in enumerate(calls)
            ],
        )

    return factory


# =============================================================================
# Agent Fixtures
# =============================================================================


@pytest.fixture
def make_agent(tmp_path: Path) -> Callable[..., Agent]:
    """Factory for agents holding a plain system prompt."""

    def factory(
        provider: Any,
        tools: Sequence[ToolDefinition] = (),
        config: AgentConfig | None = None,
        name: str = "test-agent",
    ) -> Agent:
        return Agent.create(
            name=name,
            system_message=Message.system("You are a test assistant."),
            provider=provider,
            tools=list(tools),
            context=ToolContext(working_dir=tmp_path),
            config=config,
        )

    return factory


@pytest.fixture
def echo_tool() -> ToolDefinition:
    """Synchronous tool returning its `text` argument."""

    def echo(arguments: dict[str, Any], context: ToolContext) -> str:
        return arguments["text"]

    return ToolDefinition(
        name="echo",
        description="Echo the given text",
        parameters=(ToolParameter("text", "string", "Text to echo"),),
        handler=echo,
    )


@pytest.fixture
def make_async_tool() -> Callable[..., ToolDefinition]:
    """Factory for async tools wrapping a coroutine function."""

    def factory(name: str, handler: Callable[..., Any]) -> ToolDefinition:
        return ToolDefinition(
            name=name,
            description=f"Async test tool {name}",
            parameters=(),
            handler=handler,
            mode=ExecutionMode.ASYNC,
        )

    return factory


# =============================================================================
# Thread Fixtures
# =============================================================================


@pytest.fixture
def threads_settings(tmp_path: Path) -> ThreadsSettings:
    """Thread settings with short timeouts, rooted in a temporary directory."""
    return ThreadsSettings(
        default_working_dir=tmp_path,
        list_timeout=0.2,
        call_timeout=0.5,
        max_restarts=3,
        restart_window=5.0,
        subscriber_queue_size=10,
    )


@pytest.fixture
def notification_bus() -> NotificationBus:
    return NotificationBus(queue_size=10)


@pytest.fixture
def agent_factory(scripted_provider) -> Callable[[str, ToolContext], Agent]:
    """Agent factory whose agents reply "ok" to every message."""
    provider = scripted_provider(*[Message.assistant("ok") for _ in range(50)])

    def factory(name: str, context: ToolContext) -> Agent:
        return Agent.create(
            name=name,
            system_message=Message.system(f"You work in {context.working_dir}"),
            provider=provider,
            context=context,
        )

    return factory


@pytest.fixture
async def thread_manager(agent_factory, notification_bus, threads_settings):
    manager = ThreadManager(agent_factory, notification_bus, threads_settings)
    yield manager
    await manager.shutdown()


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll a predicate until it holds or the timeout elapses."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


@pytest.fixture
def eventually() -> Callable[..., Any]:
    """Await a condition that becomes true asynchronously."""
    return wait_until
