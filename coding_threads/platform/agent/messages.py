"""Framework-agnostic message types.

These types are the common vocabulary of the conversation engine. They are
immutable: the engine only ever appends new messages to a history, it never
edits an existing one.
"""

import copy
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class Role(StrEnum):
    """Author of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ContentPart:
    """A single piece of message content.

    Attributes:
        content: Text payload
        type: Content kind, only "text" is produced by this runtime
    """

    content: str
    type: str = "text"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Return a mutable deep copy of a frozen structure (mappings become dicts)."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class ToolCall:
    """A request, emitted by the model, to invoke a named tool.

    Attributes:
        call_id: Provider-assigned identifier of the call
        name: Name of the tool to invoke
        arguments: Structured parameters, frozen on construction
        error: Why the arguments could not be parsed, None for a well-formed call
    """

    call_id: str
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", _freeze(copy.deepcopy(thaw(self.arguments))))


@dataclass(frozen=True)
class ToolResult:
    """Outcome of executing a ToolCall.

    Attributes:
        tool_call_id: The call_id of the originating ToolCall
        name: Name of the tool that produced the result
        content: Ordered content parts
        is_error: Whether the tool reported a failure
    """

    tool_call_id: str
    name: str
    content: tuple[ContentPart, ...]
    is_error: bool = False

    @classmethod
    def from_text(cls, call: ToolCall, text: str, is_error: bool = False) -> "ToolResult":
        return cls(
            tool_call_id=call.call_id,
            name=call.name,
            content=(ContentPart(text),),
            is_error=is_error,
        )

    @property
    def text(self) -> str:
        return "".join(part.content for part in self.content)


@dataclass(frozen=True)
class Message:
    """One exchanged message.

    Attributes:
        role: Author of the message
        content: Ordered content parts, None for pure tool-call turns
        tool_calls: Tool call requests (assistant messages only)
        tool_results: Tool results (tool messages only)
        metadata: Usage counters reported by the provider
    """

    role: Role
    content: tuple[ContentPart, ...] | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_results: tuple[ToolResult, ...] | None = None
    metadata: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        if self.tool_calls is not None and self.role is not Role.ASSISTANT:
            raise ValueError(f"only assistant messages carry tool calls, got {self.role}")
        if self.tool_results is not None and self.role is not Role.TOOL:
            raise ValueError(f"only tool messages carry tool results, got {self.role}")
        for name in ("content", "tool_calls", "tool_results"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        if self.metadata is not None:
            object.__setattr__(self, "metadata", _freeze(dict(self.metadata)))

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.SYSTEM, content=(ContentPart(text),))

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=(ContentPart(text),))

    @classmethod
    def assistant(
        cls,
        text: str | None = None,
        tool_calls: Sequence[ToolCall] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> "Message":
        return cls(
            role=Role.ASSISTANT,
            content=(ContentPart(text),) if text else None,
            tool_calls=tuple(tool_calls) if tool_calls else None,
            metadata=metadata,
        )

    @classmethod
    def tool(cls, results: Iterable[ToolResult]) -> "Message":
        return cls(role=Role.TOOL, tool_results=tuple(results))

    @property
    def text(self) -> str:
        """Concatenated text content, empty when there is none."""
        if not self.content:
            return ""
        return "".join(part.content for part in self.content)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


def message_to_dict(msg: Message) -> dict[str, Any]:
    """Convert a Message to a dictionary for JSON serialization."""
    result: dict[str, Any] = {
        "role": str(msg.role),
        "content": msg.text,
    }
    if msg.tool_calls is not None:
        result["tool_calls"] = [_tool_call_to_dict(call) for call in msg.tool_calls]
    if msg.tool_results is not None:
        result["tool_results"] = [
            {
                "tool_call_id": res.tool_call_id,
                "name": res.name,
                "content": res.text,
                "is_error": res.is_error,
            }
            for res in msg.tool_results
        ]
    if msg.metadata is not None:
        result["metadata"] = thaw(msg.metadata)
    return result


def _tool_call_to_dict(call: ToolCall) -> dict[str, Any]:
    result: dict[str, Any] = {"id": call.call_id, "name": call.name, "args": thaw(call.arguments)}
    if call.error is not None:
        result["error"] = call.error
    return result
