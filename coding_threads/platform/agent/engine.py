"""Conversation engine.

An Agent owns an ordered message history plus the installed tool set and
exposes the turn-taking run loop. Agents are immutable values: every
operation returns a new Agent and the history is only ever extended through
append or replace_system_prompt.
"""

import dataclasses
import secrets
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self

from opentelemetry import trace

from coding_threads.platform.agent.config import AgentConfig, RunMode
from coding_threads.platform.agent.errors import (
    MultipleSystemMessagesError,
    NoSystemMessageError,
    NotASystemMessageError,
    TurnError,
)
from coding_threads.platform.agent.graph import build_turn_graph
from coding_threads.platform.agent.messages import Message, Role, ToolResult
from coding_threads.platform.agent.metrics import (
    AgentMetricsLabels,
    collect_agent_metrics,
    record_agent_created,
)
from coding_threads.platform.agent.protocol import ChatProvider
from coding_threads.platform.agent.state import TokenUsage, TurnState, initial_state
from coding_threads.platform.agent.tools import ToolContext, ToolDefinition, ToolRegistry
from coding_threads.platform.observability.logging import get_logger

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class AgentStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a successful turn.

    Attributes:
        agent: Agent holding the updated history
        terminal_result: The termination tool's result in UNTIL_TOOL_USED mode
        usage: Tokens consumed during this turn
    """

    agent: "Agent"
    terminal_result: ToolResult | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class Agent:
    """A conversation: identity, history, tools and the provider driving it."""

    name: str
    provider: ChatProvider = field(compare=False)
    messages: tuple[Message, ...] = ()
    registry: ToolRegistry = field(default_factory=ToolRegistry)
    context: ToolContext = field(default_factory=ToolContext)
    config: AgentConfig = field(default_factory=AgentConfig)
    status: AgentStatus = AgentStatus.IDLE
    usage: TokenUsage = field(default_factory=TokenUsage, compare=False)
    id: str = field(default_factory=lambda: secrets.token_hex(16))

    @classmethod
    def create(
        cls,
        name: str,
        system_message: Message,
        provider: ChatProvider,
        tools: tuple[ToolDefinition, ...] | list[ToolDefinition] = (),
        context: ToolContext | None = None,
        config: AgentConfig | None = None,
    ) -> Self:
        """Create an agent whose history starts with the given system message."""
        if system_message.role is not Role.SYSTEM:
            raise NotASystemMessageError(system_message.role)
        agent = cls(
            name=name,
            provider=provider,
            messages=(system_message,),
            registry=ToolRegistry(tools),
            context=context or ToolContext(),
            config=config or AgentConfig(),
        )
        logger.debug("agent.new", agent_id=agent.id, agent_name=name)
        record_agent_created(AgentMetricsLabels(name))
        return agent

    @property
    def tools(self) -> tuple[ToolDefinition, ...]:
        return self.registry.definitions

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    @property
    def exchanged_messages(self) -> tuple[Message, ...]:
        """History without system messages."""
        return tuple(m for m in self.messages if m.role is not Role.SYSTEM)

    def append(self, message: Message | str) -> Self:
        """Append a message; plain text is wrapped into a user message."""
        if isinstance(message, str):
            message = Message.user(message)
        return dataclasses.replace(self, messages=(*self.messages, message))

    def install_tools(self, *tools: ToolDefinition) -> Self:
        """Return an agent whose tool set is extended with the given tools.

        Raises:
            ValueError: If a tool name is already installed
        """
        logger.debug("agent.install_tools", agent_id=self.id, tools_count=len(tools))
        return dataclasses.replace(self, registry=self.registry.register(*tools))

    def with_status(self, status: AgentStatus) -> Self:
        return dataclasses.replace(self, status=status)

    def replace_system_prompt(self, message: Message) -> Self:
        """Substitute the single system message of the history.

        Raises:
            NotASystemMessageError: If the replacement is not a system message
            NoSystemMessageError: If the history holds no system message
            MultipleSystemMessagesError: If the history holds more than one
        """
        if message.role is not Role.SYSTEM:
            raise NotASystemMessageError(message.role)

        count = sum(1 for m in self.messages if m.role is Role.SYSTEM)
        if count == 0:
            raise NoSystemMessageError()
        if count > 1:
            raise MultipleSystemMessagesError(count)

        messages = tuple(message if m.role is Role.SYSTEM else m for m in self.messages)
        return dataclasses.replace(self, messages=messages)

    async def run_turn(
        self,
        mode: RunMode = RunMode.WHILE_NEEDS_RESPONSE,
        termination_tool: str | None = None,
    ) -> TurnResult:
        """Drive the tool invocation loop until a terminal condition holds.

        Args:
            mode: Termination condition of the loop
            termination_tool: Tool whose result ends the loop in UNTIL_TOOL_USED mode

        Returns:
            TurnResult with the updated agent and, in UNTIL_TOOL_USED mode, the
            termination tool's result if it was produced

        Raises:
            ValueError: If UNTIL_TOOL_USED is requested without a termination tool
            TurnError: If the provider or a tool fault aborted the turn, or the
                turn bound was exhausted. The error carries the partial agent.
        """
        mode = RunMode(mode)
        if mode is RunMode.UNTIL_TOOL_USED and not termination_tool:
            raise ValueError("until_tool_used mode requires a termination_tool")

        logger.info(
            "agent.run_turn.start",
            agent_id=self.id,
            mode=str(mode),
            termination_tool=termination_tool,
        )
        graph = build_turn_graph(
            provider=self.provider,
            registry=self.registry,
            context=self.context,
            config=self.config,
            agent_slug=self.name,
            mode=mode,
            termination_tool=termination_tool,
        )

        state = initial_state(list(self.messages))
        with tracer.start_as_current_span(f"{self.name}.run_turn"):
            try:
                async with collect_agent_metrics(AgentMetricsLabels(self.name)):
                    async for state in graph.astream(state, stream_mode="values"):
                        pass
            except Exception as e:
                partial = self._with_history(state, AgentStatus.FAILED)
                logger.error("agent.run_turn.error", agent_id=self.id, error=repr(e))
                raise TurnError(partial, _describe(e)) from e

        if state.get("halt_reason"):
            partial = self._with_history(state, AgentStatus.FAILED)
            logger.error("agent.run_turn.halted", agent_id=self.id, reason=state["halt_reason"])
            raise TurnError(partial, state["halt_reason"])

        usage = TokenUsage.from_state(state)
        logger.info(
            "agent.run_turn.ok",
            agent_id=self.id,
            turns=state["turns"],
            input_tokens=usage.total_input_tokens,
            output_tokens=usage.total_output_tokens,
        )
        return TurnResult(
            agent=self._with_history(state, AgentStatus.IDLE),
            terminal_result=state.get("terminal_result"),
            usage=usage,
        )

    async def chat(self, text: str) -> TurnResult:
        """Append a user message and run one turn."""
        return await self.append(text).run_turn()

    def _with_history(self, state: TurnState, status: AgentStatus) -> Self:
        """Agent holding the turn's history, with the turn's tokens added to its usage."""
        return dataclasses.replace(
            self,
            messages=tuple(state["messages"]),
            status=status,
            usage=self.usage + TokenUsage.from_state(state),
        )


def _describe(error: Exception) -> str:
    message = str(error)
    return message if message else type(error).__name__
