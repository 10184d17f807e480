"""LangGraph state of one conversation turn, and the token usage it accumulates."""

import operator
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, TypedDict

from coding_threads.platform.agent.messages import Message, ToolResult


def add_tokens(existing: dict[str, int], new: dict[str, int]) -> dict[str, int]:
    """Reducer that accumulates token counts by model.

    Args:
        existing: Current token counts by model
        new: New token counts to add

    Returns:
        Merged dict with accumulated counts per model
    """
    result = dict(existing or {})
    for model, tokens in (new or {}).items():
        result[model] = result.get(model, 0) + tokens
    return result


@dataclass(frozen=True)
class TokenUsage:
    """Tokens consumed by a conversation, by model.

    Attributes:
        input_tokens_by_model: Prompt tokens sent to each model
        output_tokens_by_model: Completion tokens returned by each model
    """

    input_tokens_by_model: Mapping[str, int] = field(default_factory=dict)
    output_tokens_by_model: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> "TokenUsage":
        return cls(
            input_tokens_by_model=dict(state.get("input_tokens_by_model") or {}),
            output_tokens_by_model=dict(state.get("output_tokens_by_model") or {}),
        )

    @property
    def total_input_tokens(self) -> int:
        return sum(self.input_tokens_by_model.values())

    @property
    def total_output_tokens(self) -> int:
        return sum(self.output_tokens_by_model.values())

    def __bool__(self) -> bool:
        return bool(self.input_tokens_by_model or self.output_tokens_by_model)

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens_by_model=add_tokens(
                dict(self.input_tokens_by_model), dict(other.input_tokens_by_model)
            ),
            output_tokens_by_model=add_tokens(
                dict(self.output_tokens_by_model), dict(other.output_tokens_by_model)
            ),
        )


class TurnState(TypedDict):
    """State threaded through the tool invocation loop.

    Attributes:
        messages: Conversation history, nodes append through the add reducer
        turns: Model calls made during this turn
        consecutive_failures: Consecutive tool rounds whose results were all errors
        terminal_result: Result of the termination tool, once produced
        halt_reason: Set when the loop must abort, ends the graph
        input_tokens_by_model: Input tokens consumed during this turn
        output_tokens_by_model: Output tokens consumed during this turn
    """

    messages: Annotated[list[Message], operator.add]
    turns: int
    consecutive_failures: int
    terminal_result: ToolResult | None
    halt_reason: str | None
    input_tokens_by_model: Annotated[dict[str, int], add_tokens]
    output_tokens_by_model: Annotated[dict[str, int], add_tokens]


def initial_state(messages: list[Message]) -> TurnState:
    return TurnState(
        messages=list(messages),
        turns=0,
        consecutive_failures=0,
        terminal_result=None,
        halt_reason=None,
        input_tokens_by_model={},
        output_tokens_by_model={},
    )
