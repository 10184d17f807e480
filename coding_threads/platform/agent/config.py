"""Configuration dataclasses for agent components.

This module provides immutable configuration objects for LLM clients and
conversation engine behavior.
"""

from dataclasses import dataclass
from enum import StrEnum


class RunMode(StrEnum):
    """Termination condition of the tool invocation loop.

    WHILE_NEEDS_RESPONSE: stop as soon as the model replies without tool calls.
    UNTIL_SUCCESS: same terminal condition, but rounds whose tool results are
        all errors count as failures and too many in a row abort the turn.
    UNTIL_TOOL_USED: additionally stop as soon as the termination tool produced
        a result, without feeding that result back to the model.
    """

    WHILE_NEEDS_RESPONSE = "while_needs_response"
    UNTIL_SUCCESS = "until_success"
    UNTIL_TOOL_USED = "until_tool_used"


@dataclass(frozen=True)
class LlmConfig:
    """Configuration for language model clients.

    Attributes:
        model: Model identifier (e.g., "litellm_proxy/anthropic/claude-sonnet-4-5")
        api_key: API key for the LLM provider
        base_url: Base URL for the API (e.g., LiteLLM proxy URL)
        temperature: Sampling temperature (0.0 to 1.0)
    """

    model: str
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.7


@dataclass(frozen=True)
class AgentConfig:
    """Configuration for conversation engine behavior.

    Attributes:
        max_turns: Maximum model calls in one run_turn before it is aborted
        max_consecutive_failures: Tolerated consecutive all-error tool rounds
            in UNTIL_SUCCESS mode
    """

    max_turns: int = 25
    max_consecutive_failures: int = 3

    @property
    def recursion_limit(self) -> int:
        """Graph recursion limit: two supersteps per turn plus headroom."""
        return 2 * self.max_turns + 5


@dataclass(frozen=True)
class AgentIdentity:
    """Identity information for an agent.

    Attributes:
        name: Human-readable display name for the agent
        description: Brief description of the agent's capabilities
        slug: URL-safe identifier used in metrics and logs
    """

    name: str
    description: str
    slug: str
