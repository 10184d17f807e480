"""Tool node with a failure-reporting wrapper."""

import logging
from collections.abc import Awaitable, Callable
from time import monotonic

from langchain_core.messages import ToolMessage
from langchain_core.tools import BaseTool
from langgraph.prebuilt import ToolNode
from langgraph.prebuilt.tool_node import ToolCallRequest
from langgraph.types import Command

from coding_threads.platform.agent.metrics import ToolMetricsLabels, record_tool_call
from coding_threads.platform.agent.tools import ToolError, ToolFault

logger = logging.getLogger(__name__)

# Artifact key flagging a result produced by a ToolFault
FAULT_KEY = "fault"


class ToolCallWrapper:
    """Wrapper that intercepts tool execution to answer every call.

    A handler's failure never escapes the ToolNode, each one becomes an
    error ToolMessage:
    - ToolError: its message is the result text
    - ToolFault: reported as "Error: <message>", with the message also stored
      under the "fault" artifact key so the caller can abort the turn
    - any other exception: reported as "Error: <message>"
    """

    def __init__(self, agent_slug: str):
        """Initialize the wrapper.

        Args:
            agent_slug: The agent's slug for metrics labeling
        """
        self.agent_slug = agent_slug

    async def __call__(
        self,
        tool_call_request: ToolCallRequest,
        handler: Callable[[ToolCallRequest], Awaitable[ToolMessage | Command]],
        **kwargs,
    ) -> ToolMessage | Command:
        tool_call = tool_call_request.tool_call
        tool_name = tool_call["name"]

        labels = ToolMetricsLabels(self.agent_slug, tool_name)
        start_time = monotonic()
        try:
            response = await handler(tool_call_request)
        except ToolFault as e:
            record_tool_call(labels, duration=monotonic() - start_time, error=True)
            logger.error("Tool '%s' raised an unrecoverable fault", tool_name, exc_info=True)
            reason = str(e) or type(e).__name__
            return self._error(tool_call, f"Error: {reason}", artifact={FAULT_KEY: reason})
        except ToolError as e:
            record_tool_call(labels, duration=monotonic() - start_time, error=True)
            return self._error(tool_call, str(e))
        except Exception as e:
            record_tool_call(labels, duration=monotonic() - start_time, error=True)
            logger.warning("Tool '%s' failed: %s", tool_name, e)
            return self._error(tool_call, f"Error: {e!s}")

        record_tool_call(labels, duration=monotonic() - start_time)
        return response

    @staticmethod
    def _error(tool_call, content: str, artifact: dict | None = None) -> ToolMessage:
        return ToolMessage(
            content=content,
            artifact=artifact,
            tool_call_id=tool_call["id"],
            name=tool_call["name"],
            status="error",
        )


class ToolNodeFactory:
    """Factory for tool nodes whose failures become error results."""

    def __init__(self, agent_slug: str):
        self.agent_slug = agent_slug

    def create(self, tools: list[BaseTool]) -> ToolNode:
        """Create a tool node wrapped by ToolCallWrapper.

        Errors are not handled by the node itself so that the wrapper sees
        the handler's original exception.

        Args:
            tools: List of tools to include

        Returns:
            Configured ToolNode
        """
        return ToolNode(
            tools,
            awrap_tool_call=ToolCallWrapper(self.agent_slug),
            handle_tool_errors=False,
        )


def fault_reason(message: ToolMessage) -> str | None:
    """Return the fault recorded on a tool message, None if there is none."""
    artifact = message.artifact
    if isinstance(artifact, dict):
        return artifact.get(FAULT_KEY)
    return None
