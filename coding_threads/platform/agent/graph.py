"""Tool invocation loop as a LangGraph state machine.

The graph alternates two nodes until a terminal condition holds:

    START -> model -> (tools -> model)* -> END

- ModelNode sends the history and tool schemas to the provider and appends
  the assistant message.
- ToolsNode runs every tool call of that message through a LangGraph
  ToolNode and appends one tool message answering each call, in call order.
"""

import logging
from collections.abc import Sequence
from typing import Any, Literal

from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from coding_threads.platform.agent.config import AgentConfig, RunMode
from coding_threads.platform.agent.langchain import LangChainMessageConverter, to_structured_tool
from coding_threads.platform.agent.messages import Message, ToolCall, ToolResult, thaw
from coding_threads.platform.agent.protocol import ChatProvider
from coding_threads.platform.agent.state import TurnState
from coding_threads.platform.agent.tool_node import ToolNodeFactory, fault_reason
from coding_threads.platform.agent.tools import ToolContext, ToolRegistry

logger = logging.getLogger(__name__)


class ModelNode:
    """Node that asks the provider for the next assistant message.

    Enforces the turn bound: once max_turns model calls were made, it sets
    halt_reason instead of calling the provider again.
    """

    def __init__(self, provider: ChatProvider, registry: ToolRegistry, config: AgentConfig):
        self.provider = provider
        self.registry = registry
        self.config = config

    async def __call__(self, state: TurnState) -> dict[str, Any]:
        turns = state.get("turns", 0)
        if turns >= self.config.max_turns:
            return {"halt_reason": f"Exceeded maximum of {self.config.max_turns} model turns"}

        logger.debug("Model turn %d, messages count: %d", turns, len(state["messages"]))
        response = await self.provider.complete(state["messages"], self.registry.definitions)

        update: dict[str, Any] = {"messages": [response], "turns": turns + 1}
        usage = response.metadata or {}
        if usage:
            model = usage.get("model", self.provider.model_name)
            update["input_tokens_by_model"] = {model: usage.get("input_tokens", 0)}
            update["output_tokens_by_model"] = {model: usage.get("output_tokens", 0)}
        return update


class ToolsNode:
    """Node that executes the tool calls of the last assistant message.

    Known tools run concurrently through a ToolNode. Calls to unknown tools
    and malformed calls are answered without running anything. The resulting
    tool message lists results in the order the calls appeared, not in
    completion order, and answers every call even when a tool faults: the
    fault then halts the turn after this round.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        context: ToolContext,
        config: AgentConfig,
        agent_slug: str,
        mode: RunMode = RunMode.WHILE_NEEDS_RESPONSE,
        termination_tool: str | None = None,
    ):
        self.registry = registry
        self.config = config
        self.mode = mode
        self.termination_tool = termination_tool
        self.tool_node = ToolNodeFactory(agent_slug).create(
            [to_structured_tool(tool, context) for tool in registry.definitions]
        )

    async def __call__(self, state: TurnState, config: RunnableConfig) -> dict[str, Any]:
        calls = state["messages"][-1].tool_calls or ()
        results, faults = await self.dispatch_all(calls, config)

        update: dict[str, Any] = {"messages": [Message.tool(results)]}

        if faults:
            update["halt_reason"] = faults[0]
            return update

        if self.mode is RunMode.UNTIL_TOOL_USED:
            terminal = next((r for r in results if r.name == self.termination_tool), None)
            if terminal is not None:
                update["terminal_result"] = terminal

        if self.mode is RunMode.UNTIL_SUCCESS:
            failures = state.get("consecutive_failures", 0)
            failures = failures + 1 if all(r.is_error for r in results) else 0
            update["consecutive_failures"] = failures
            if failures > self.config.max_consecutive_failures:
                update["halt_reason"] = (
                    f"Exceeded maximum of {self.config.max_consecutive_failures} "
                    "consecutive failed tool rounds"
                )
        return update

    async def dispatch_all(
        self, calls: Sequence[ToolCall], config: RunnableConfig | None = None
    ) -> tuple[list[ToolResult], list[str]]:
        """Run all calls of a round.

        Returns:
            Results in call order, and the descriptions of the faults raised
        """
        results: dict[int, ToolResult] = {}
        runnable: list[tuple[int, ToolCall]] = []
        for idx, call in enumerate(calls):
            if call.error is not None:
                text = f"Invalid arguments for tool '{call.name}': {call.error}"
                results[idx] = ToolResult.from_text(call, text, is_error=True)
            elif call.name not in self.registry:
                logger.warning("Model requested unknown tool '%s'", call.name)
                text = f"Tool '{call.name}' not found"
                results[idx] = ToolResult.from_text(call, text, is_error=True)
            else:
                runnable.append((idx, call))

        faults: list[str] = []
        if runnable:
            request = AIMessage(
                content="",
                tool_calls=[
                    {
                        "id": call.call_id,
                        "name": call.name,
                        "args": thaw(call.arguments),
                        "type": "tool_call",
                    }
                    for _, call in runnable
                ],
            )
            output = await self.tool_node.ainvoke({"messages": [request]}, config)
            for (idx, call), message in zip(runnable, output["messages"], strict=True):
                if (reason := fault_reason(message)) is not None:
                    faults.append(f"Tool '{call.name}' raised an unrecoverable fault: {reason}")
                text = LangChainMessageConverter.extract_text(message.content)
                results[idx] = ToolResult.from_text(call, text, is_error=message.status == "error")

        return [results[idx] for idx in range(len(calls))], faults


def route_after_model(state: TurnState) -> Literal["tools", "__end__"]:
    if state.get("halt_reason"):
        return END
    if state["messages"][-1].has_tool_calls:
        return "tools"
    return END


def route_after_tools(state: TurnState) -> Literal["model", "__end__"]:
    if state.get("halt_reason") or state.get("terminal_result") is not None:
        return END
    return "model"


def build_turn_graph(
    provider: ChatProvider,
    registry: ToolRegistry,
    context: ToolContext,
    config: AgentConfig,
    agent_slug: str,
    mode: RunMode = RunMode.WHILE_NEEDS_RESPONSE,
    termination_tool: str | None = None,
) -> CompiledStateGraph:
    """Assemble the model/tools loop for one turn.

    Returns:
        Compiled graph with a recursion limit derived from max_turns
    """
    workflow = StateGraph(TurnState)

    workflow.add_node("model", ModelNode(provider, registry, config))  # type: ignore
    workflow.add_node(
        "tools",
        ToolsNode(registry, context, config, agent_slug, mode, termination_tool),  # type: ignore
    )

    workflow.add_edge(START, "model")
    workflow.add_conditional_edges("model", route_after_model)
    workflow.add_conditional_edges("tools", route_after_tools)

    compiled = workflow.compile()
    return compiled.with_config({"recursion_limit": config.recursion_limit})  # type: ignore
