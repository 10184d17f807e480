"""LangChain integration components.

This module converts between the engine's message vocabulary and LangChain
messages, and adapts tool definitions to LangChain tools:
- LangChainMessageConverter: Message <-> BaseMessage
- to_structured_tool: ToolDefinition -> StructuredTool bound to a ToolContext
- to_langchain_tools: ToolDefinitions -> OpenAI-style schemas for bind_tools
"""

import logging
import secrets
from collections.abc import Iterable, Sequence
from typing import Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import StructuredTool
from langchain_core.utils.function_calling import convert_to_openai_tool

from coding_threads.platform.agent.messages import Message, Role, ToolCall, thaw
from coding_threads.platform.agent.tools import ExecutionMode, ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


class LangChainMessageConverter:
    """Converts engine messages to LangChain messages and back.

    A single engine tool message may hold several results; LangChain expects
    one ToolMessage per result, so a tool message expands into several.
    """

    @classmethod
    def to_langchain(cls, messages: Iterable[Message]) -> list[BaseMessage]:
        converted: list[BaseMessage] = []
        for message in messages:
            converted.extend(cls._convert(message))
        return converted

    @staticmethod
    def _convert(message: Message) -> list[BaseMessage]:
        match message.role:
            case Role.SYSTEM:
                return [SystemMessage(content=message.text)]
            case Role.USER:
                return [HumanMessage(content=message.text)]
            case Role.ASSISTANT:
                tool_calls = [
                    {
                        "id": call.call_id,
                        "name": call.name,
                        "args": thaw(call.arguments),
                        "type": "tool_call",
                    }
                    for call in message.tool_calls or ()
                ]
                return [AIMessage(content=message.text, tool_calls=tool_calls)]
            case Role.TOOL:
                return [
                    ToolMessage(
                        content=result.text,
                        tool_call_id=result.tool_call_id,
                        name=result.name,
                        status="error" if result.is_error else "success",
                    )
                    for result in message.tool_results or ()
                ]
        raise ValueError(f"Unsupported role: {message.role}")

    @classmethod
    def from_langchain(
        cls, message: AIMessage, metadata: dict[str, Any] | None = None
    ) -> Message:
        """Convert a model response into an assistant message.

        Malformed calls (invalid_tool_calls) are kept as ToolCalls carrying the
        parse error, so the model receives an error result for each of them.

        Args:
            message: Response returned by the chat model
            metadata: Usage counters to attach to the message

        Returns:
            Assistant Message carrying text and tool calls
        """
        tool_calls = [
            ToolCall(
                call_id=call.get("id") or f"call_{secrets.token_hex(8)}",
                name=call["name"],
                arguments=call.get("args") or {},
            )
            for call in message.tool_calls
        ]
        for invalid in getattr(message, "invalid_tool_calls", None) or []:
            name = invalid.get("name") or "unknown"
            error = invalid.get("error") or f"Arguments are not valid JSON: {invalid.get('args')}"
            logger.warning("Malformed call to tool '%s': %s", name, error)
            call_id = invalid.get("id") or f"call_{secrets.token_hex(8)}"
            tool_calls.append(ToolCall(call_id=call_id, name=name, error=error))
        return Message.assistant(
            text=cls.extract_text(message.content) or None,
            tool_calls=tool_calls or None,
            metadata=metadata,
        )

    @staticmethod
    def extract_text(content: str | list[Any]) -> str:
        """Extract text content from a LangChain message content.

        Args:
            content: Either a string or a list of content blocks

        Returns:
            Extracted text as a string
        """
        if isinstance(content, str):
            return content
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)


def to_structured_tool(tool: ToolDefinition, context: ToolContext | None = None) -> StructuredTool:
    """Convert a ToolDefinition to a LangChain StructuredTool.

    The parameter schema is passed through as a JSON schema, so arguments
    reach the handler unvalidated and handlers report bad input with
    ToolError. SYNC handlers become the tool's func, which LangChain runs in
    an executor when invoked asynchronously; ASYNC handlers become its
    coroutine.

    Args:
        tool: Tool to convert
        context: Context handed to every call, a default one when omitted

    Returns:
        StructuredTool whose invocations run the tool's handler
    """
    context = context or ToolContext()
    handler = tool.handler

    tool_kwargs: dict[str, Any] = {
        "name": tool.name,
        "description": tool.description,
        "args_schema": tool.json_schema(),
    }
    if tool.mode is ExecutionMode.ASYNC:

        async def invoke(**kwargs: Any) -> str:
            return str(await handler(kwargs, context))  # type: ignore[misc]

        tool_kwargs["coroutine"] = invoke
    else:

        def run(**kwargs: Any) -> str:
            return str(handler(kwargs, context))

        tool_kwargs["func"] = run

    return StructuredTool(**tool_kwargs)


def to_langchain_tools(tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    """Render tool definitions as OpenAI-style function schemas for bind_tools."""
    return [convert_to_openai_tool(to_structured_tool(tool)) for tool in tools]
