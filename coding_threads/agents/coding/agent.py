"""Coding agent builder module.

This module provides the builder that assembles the conversations run by
threads: the base system prompt, the LiteLLM provider and the full coding
tool set, including the delegation tools.
"""

from coding_threads.agents.coding.prompt import build_system_prompt
from coding_threads.agents.coding.tools import (
    SubAgentDelegator,
    all_file_tools,
    create_bash_tool,
    create_codebase_search_tool,
    create_task_tool,
)
from coding_threads.platform.agent.config import AgentConfig, AgentIdentity, LlmConfig
from coding_threads.platform.agent.engine import Agent
from coding_threads.platform.agent.llm_client import LlmClient
from coding_threads.platform.agent.messages import Message
from coding_threads.platform.agent.protocol import ChatProvider
from coding_threads.platform.agent.tools import ToolContext, ToolDefinition
from coding_threads.platform.settings import Settings


class CodingAgentBuilder:
    """Builder for the coding agent.

    This builder assembles all components needed for a coding conversation:
    - Chat provider (LiteLLM unless one is injected)
    - Base system prompt bound to the thread's working directory
    - File, shell and delegation tools
    """

    SLUG = "coding"

    def __init__(
        self,
        llm_config: LlmConfig,
        agent_config: AgentConfig,
        identity: AgentIdentity,
        provider: ChatProvider | None = None,
        subtask_config: AgentConfig | None = None,
        custom_instructions: str | None = None,
    ) -> None:
        """Initialize the builder with configuration.

        Args:
            llm_config: Configuration for the LLM client
            agent_config: Engine limits of the conversations built
            identity: Agent identity (name, description, slug)
            provider: Optional chat provider. Defaults to an LlmClient built
                from llm_config. Inject for testing.
            subtask_config: Engine limits of delegated sub-agents
            custom_instructions: Optional text appended to the system prompt
        """
        self.llm_config = llm_config
        self.agent_config = agent_config
        self.identity = identity
        self.subtask_config = subtask_config
        self.custom_instructions = custom_instructions
        self.provider = provider or LlmClient.from_config(identity.slug, llm_config)

    def base_agent(self, name: str, context: ToolContext) -> Agent:
        """Build an agent holding only the base system prompt and no tools."""
        system = Message.system(build_system_prompt(context.working_dir, self.custom_instructions))
        return Agent.create(
            name=name,
            system_message=system,
            provider=self.provider,
            context=context,
            config=self.agent_config,
        )

    def tools(self) -> list[ToolDefinition]:
        delegator = SubAgentDelegator(self.base_agent, self.subtask_config)
        return [
            *all_file_tools(),
            create_bash_tool(),
            create_task_tool(delegator),
            create_codebase_search_tool(self.base_agent),
        ]

    def build(self, name: str, context: ToolContext) -> Agent:
        """Build a coding agent with the full tool set.

        Returns:
            An Agent ready to receive its first user message
        """
        return self.base_agent(name, context).install_tools(*self.tools())


def default_builder(settings: Settings, provider: ChatProvider | None = None) -> CodingAgentBuilder:
    """Wire a CodingAgentBuilder from application settings."""
    return CodingAgentBuilder(
        llm_config=LlmConfig(
            model=settings.llm.model,
            api_key=settings.litellm.proxy_api_key,
            base_url=settings.litellm.proxy_api_base,
            temperature=settings.llm.temperature,
        ),
        agent_config=AgentConfig(
            max_turns=settings.agent.max_turns,
            max_consecutive_failures=settings.agent.max_consecutive_failures,
        ),
        identity=AgentIdentity(
            name="Coding Agent",
            description="Autonomous software-engineering assistant working in a thread's directory",
            slug=CodingAgentBuilder.SLUG,
        ),
        provider=provider,
        subtask_config=AgentConfig(
            max_turns=settings.agent.subtask_max_turns,
            max_consecutive_failures=settings.agent.max_consecutive_failures,
        ),
    )
