"""Model provider protocol.

The conversation engine treats the language model as an opaque capability:
it hands over the history and the installed tool schemas and gets one
assistant message back.
"""

from collections.abc import Sequence
from typing import Protocol

from coding_threads.platform.agent.messages import Message
from coding_threads.platform.agent.tools import ToolDefinition


class ChatProvider(Protocol):
    """Protocol for a language-model provider."""

    @property
    def model_name(self) -> str:
        """Identifier of the underlying model, used for token accounting."""
        ...

    async def complete(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
    ) -> Message:
        """Produce the next assistant message.

        Args:
            messages: Full conversation history, system message first
            tools: Tools the model may call

        Returns:
            An assistant Message, possibly carrying tool calls
        """
        ...
