"""Codebase search tool backed by a read-only child agent."""

from typing import Any

from coding_threads.agents.coding.prompt import build_search_prompt
from coding_threads.agents.coding.tools.task import BaseAgentFactory
from coding_threads.agents.coding.tools.toolsets import read_only_tools
from coding_threads.platform.agent.errors import TurnError
from coding_threads.platform.agent.messages import Message
from coding_threads.platform.agent.tools import (
    ExecutionMode,
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolParameter,
)

SEARCH_AGENT_NAME = "codebase_search"


def create_codebase_search_tool(base_agent_factory: BaseAgentFactory) -> ToolDefinition:
    """Create the codebase_search tool.

    The search agent only gets read-only tools, so it can neither change
    files nor delegate further.
    """

    async def codebase_search(arguments: dict[str, Any], context: ToolContext) -> str:
        query = arguments.get("query")
        if not query:
            raise ToolError("Missing required parameter: query")

        agent = (
            base_agent_factory(SEARCH_AGENT_NAME, context)
            .replace_system_prompt(Message.system(build_search_prompt(context.working_dir)))
            .install_tools(*read_only_tools())
            .append(Message.user(query))
        )
        try:
            result = await agent.run_turn()
        except TurnError as e:
            raise ToolError(f"Search failed: {e.reason}") from e

        last = result.agent.last_message
        if last is None or not last.text:
            raise ToolError("Search finished without an answer")
        return last.text

    return ToolDefinition(
        name="codebase_search",
        description=(
            "Intelligently search your codebase with an agent that has access to: "
            "list_directory, grep, glob, read_file.\n\n"
            "Use it for high-level questions such as \"how do we check for authentication "
            "headers?\", or searches combining several techniques. Do not use it when you know "
            "the exact file path or are looking for an exact string: use read_file, glob or "
            "grep directly.\n\n"
            "Phrase the query as if talking to another engineer, and make clear when the "
            "agent has found the right thing. Launch several searches concurrently when useful."
        ),
        parameters=(
            ToolParameter(
                "query",
                "string",
                "What to search for. Be specific and include technical terms, file types, "
                "or expected code patterns.",
            ),
        ),
        handler=codebase_search,
        mode=ExecutionMode.ASYNC,
    )
