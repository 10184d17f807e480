"""Agent infrastructure module.

This module provides the core abstractions for running conversations:
- Message and tool contract types
- Configuration dataclasses
- The conversation engine and its LangGraph tool invocation loop
- The LiteLLM-backed chat provider
- Agent-specific metrics
"""

from coding_threads.platform.agent.config import (
    AgentConfig,
    AgentIdentity,
    LlmConfig,
    RunMode,
)
from coding_threads.platform.agent.engine import Agent, AgentStatus, TurnResult
from coding_threads.platform.agent.errors import (
    AgentError,
    MultipleSystemMessagesError,
    NoSystemMessageError,
    NotASystemMessageError,
    SystemPromptError,
    TurnError,
)
from coding_threads.platform.agent.llm_client import LlmClient
from coding_threads.platform.agent.messages import (
    ContentPart,
    Message,
    Role,
    ToolCall,
    ToolResult,
)
from coding_threads.platform.agent.protocol import ChatProvider
from coding_threads.platform.agent.state import TokenUsage
from coding_threads.platform.agent.tools import (
    ExecutionMode,
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolFault,
    ToolParameter,
    ToolRegistry,
)

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentError",
    "AgentIdentity",
    "AgentStatus",
    "ChatProvider",
    "ContentPart",
    "ExecutionMode",
    "LlmClient",
    "LlmConfig",
    "Message",
    "MultipleSystemMessagesError",
    "NoSystemMessageError",
    "NotASystemMessageError",
    "Role",
    "RunMode",
    "SystemPromptError",
    "TokenUsage",
    "ToolCall",
    "ToolContext",
    "ToolDefinition",
    "ToolError",
    "ToolFault",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "TurnError",
    "TurnResult",
]
