"""Exception hierarchy for the conversation engine."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coding_threads.platform.agent.engine import Agent


class AgentError(Exception):
    """Base exception for conversation engine errors."""


class SystemPromptError(AgentError):
    """Raised when a system prompt replacement request is malformed."""


class NoSystemMessageError(SystemPromptError):
    def __init__(self) -> None:
        super().__init__("History contains no system message to replace")


class MultipleSystemMessagesError(SystemPromptError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"History contains {count} system messages, expected exactly one")


class NotASystemMessageError(SystemPromptError):
    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Replacement must be a system message, got {role}")


class TurnError(AgentError):
    """Raised when a turn aborts.

    Carries the agent with the history accumulated before the failure so the
    caller can inspect or retry.
    """

    def __init__(self, agent: "Agent", reason: str):
        self.agent = agent
        self.reason = reason
        super().__init__(reason)
