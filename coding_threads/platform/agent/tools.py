"""Tool contract consumed by the conversation engine.

A tool is a named callable with a JSON-schema-described parameter set. The
engine never looks inside a handler: it binds the call's arguments and a
ToolContext, and turns the outcome into a ToolResult.
"""

from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

type ToolHandler = Callable[[dict[str, Any], "ToolContext"], str | Awaitable[str]]


class ToolError(Exception):
    """Recoverable tool failure, reported back to the model as an error result."""


class ToolFault(Exception):
    """Unrecoverable tool failure that aborts the whole turn."""


class ExecutionMode(StrEnum):
    """How the engine dispatches a handler.

    SYNC handlers are plain functions run in a worker thread so they only
    block their own call. ASYNC handlers are coroutine functions awaited on
    the event loop.
    """

    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class ToolParameter:
    """One parameter of a tool.

    Attributes:
        name: Parameter name as seen by the model
        type: JSON schema type (string, integer, number, boolean, object, array)
        description: Human-readable description for the model
        required: Whether the model must provide it
        default: Value documented to the model when the parameter is omitted
    """

    name: str
    type: str
    description: str
    required: bool = True
    default: Any = None


@dataclass(frozen=True)
class ToolContext:
    """Opaque per-conversation context handed to every handler.

    Attributes:
        working_dir: Directory the conversation operates in
        thread_name: Name of the owning thread, if any
    """

    working_dir: Path = field(default_factory=Path.cwd)
    thread_name: str | None = None


@dataclass(frozen=True)
class ToolDefinition:
    """A registered tool.

    Attributes:
        name: Unique name within a registry
        description: Description shown to the model
        parameters: Ordered parameter list
        handler: Callable receiving (arguments, context) and returning text
        mode: Dispatch mode of the handler
    """

    name: str
    description: str
    parameters: tuple[ToolParameter, ...]
    handler: ToolHandler = field(compare=False)
    mode: ExecutionMode = ExecutionMode.SYNC

    def json_schema(self) -> dict[str, Any]:
        """Render the parameter list as a JSON object schema."""
        properties: dict[str, Any] = {}
        for param in self.parameters:
            prop: dict[str, Any] = {"type": param.type, "description": param.description}
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in self.parameters if p.required],
        }


class ToolRegistry(Mapping[str, ToolDefinition]):
    """Immutable name -> ToolDefinition mapping.

    Registering returns a new registry. Registering a name twice is a
    programming error and raises ValueError.
    """

    def __init__(self, tools: Iterable[ToolDefinition] = ()) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Tool name collision: '{tool.name}' is already registered")
            self._tools[tool.name] = tool

    def register(self, *tools: ToolDefinition) -> "ToolRegistry":
        return ToolRegistry([*self._tools.values(), *tools])

    def __getitem__(self, name: str) -> ToolDefinition:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)!r})"

    @property
    def definitions(self) -> tuple[ToolDefinition, ...]:
        return tuple(self._tools.values())
