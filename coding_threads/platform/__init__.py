"""Platform infrastructure module.

This module provides the runtime the coding agents are built on:
- Conversation engine, tool registry and LiteLLM chat provider
- Thread process manager and notification bus
- FastAPI server configuration
- Observability utilities
"""

from coding_threads.platform.agent import (
    Agent,
    AgentConfig,
    AgentIdentity,
    ChatProvider,
    LlmConfig,
    Message,
    ToolDefinition,
    ToolRegistry,
)
from coding_threads.platform.settings import Settings
from coding_threads.platform.threads import NotificationBus, ThreadManager

__all__ = [
    # Conversation engine
    "Agent",
    "ChatProvider",
    "Message",
    "ToolDefinition",
    "ToolRegistry",
    # Configuration
    "AgentConfig",
    "AgentIdentity",
    "LlmConfig",
    "Settings",
    # Threads
    "NotificationBus",
    "ThreadManager",
]
