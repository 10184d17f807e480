"""Sub-agent delegation.

The task tool hands a bounded sub-task to a fresh child conversation. The
child starts from the base configuration, gets the sub-agent instruction
set and only the restricted tool set plus the report sentinel, and runs
until it calls report.
"""

import dataclasses
from collections.abc import Callable, Sequence
from typing import Any

from coding_threads.agents.coding.prompt import build_subagent_prompt, build_task_payload
from coding_threads.agents.coding.tools.report import REPORT_TOOL_NAME, create_report_tool
from coding_threads.agents.coding.tools.toolsets import restricted_tools
from coding_threads.platform.agent.config import AgentConfig, RunMode
from coding_threads.platform.agent.engine import Agent
from coding_threads.platform.agent.errors import SystemPromptError, TurnError
from coding_threads.platform.agent.messages import Message, Role
from coding_threads.platform.agent.tools import (
    ExecutionMode,
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolParameter,
)
from coding_threads.platform.observability.logging import get_logger

logger = get_logger(__name__)

SUBTASK_AGENT_NAME = "subtask"

# Builds an agent holding only the base system prompt
type BaseAgentFactory = Callable[[str, ToolContext], Agent]


class DelegationError(ToolError):
    """Raised when a delegated sub-task cannot produce a report."""


def find_report(messages: Sequence[Message]) -> str | None:
    """Return the text of the latest report result in the history, if any."""
    for message in reversed(messages):
        if message.role is not Role.TOOL:
            continue
        for result in message.tool_results or ():
            if result.name == REPORT_TOOL_NAME:
                return result.text
    return None


class SubAgentDelegator:
    """Runs sub-tasks in isolated, single-level child conversations."""

    def __init__(self, base_agent_factory: BaseAgentFactory, config: AgentConfig | None = None):
        """Initialize the delegator.

        Args:
            base_agent_factory: Builds a fresh agent from the base configuration
            config: Engine limits of the child, the factory's when omitted
        """
        self._base_agent_factory = base_agent_factory
        self._config = config

    def build_child(
        self,
        description: str,
        plan: str,
        verification: str | None = None,
        extra_context: str | None = None,
        context: ToolContext | None = None,
    ) -> Agent:
        context = context or ToolContext()
        agent = self._base_agent_factory(SUBTASK_AGENT_NAME, context)
        if self._config is not None:
            agent = dataclasses.replace(agent, config=self._config)
        agent = agent.replace_system_prompt(Message.system(build_subagent_prompt(context.working_dir)))
        agent = agent.install_tools(*restricted_tools(), create_report_tool())
        return agent.append(
            Message.user(build_task_payload(description, plan, verification, extra_context))
        )

    async def delegate(
        self,
        description: str,
        plan: str,
        verification: str | None = None,
        extra_context: str | None = None,
        context: ToolContext | None = None,
    ) -> str:
        """Run a sub-task and return the child's report.

        Returns:
            The report payload

        Raises:
            DelegationError: If the child failed or finished without reporting
        """
        logger.info("task.delegate", description=description[:200])
        try:
            child = self.build_child(description, plan, verification, extra_context, context)
        except SystemPromptError as e:
            raise DelegationError(str(e)) from e

        try:
            result = await child.run_turn(RunMode.UNTIL_TOOL_USED, REPORT_TOOL_NAME)
        except TurnError as e:
            logger.warning("task.failed", agent_id=child.id, reason=e.reason)
            raise DelegationError(e.reason) from e

        payload = find_report(result.agent.messages)
        if payload is None:
            logger.warning("task.no_report", agent_id=child.id)
            raise DelegationError("report result not found")
        logger.info("task.done", agent_id=child.id)
        return payload


def create_task_tool(delegator: SubAgentDelegator) -> ToolDefinition:
    """Create the task tool.

    Returns:
        Async ToolDefinition delegating to the given SubAgentDelegator
    """

    async def task(arguments: dict[str, Any], context: ToolContext) -> str:
        if not arguments.get("description") or not arguments.get("plan"):
            raise ToolError("Missing required parameters: description, plan")
        return await delegator.delegate(
            description=arguments["description"],
            plan=arguments["plan"],
            verification=arguments.get("verification"),
            extra_context=arguments.get("extra_context"),
            context=context,
        )

    return ToolDefinition(
        name="task",
        description=(
            "Perform a sub-task of the user's overall task using a sub-agent that has access "
            "to: list_directory, glob, read_file, bash, edit_file, create_file.\n\n"
            "Use it for complex multi-step work, or work producing a lot of output that is not "
            "needed afterwards. Do not use it for a single edit or a single file read.\n\n"
            "Include all necessary context and a detailed plan: the sub-agent does not see "
            "this conversation. Tell it how to verify its work. You will not see its "
            "individual steps; when done it reports a summary that is returned as this "
            "tool's result."
        ),
        parameters=(
            ToolParameter(
                "description",
                "string",
                "Full task description with all necessary context and expected outputs",
            ),
            ToolParameter("plan", "string", "Detailed plan/checklist for the sub-agent to follow"),
            ToolParameter(
                "verification",
                "string",
                "Commands/steps to verify work (tests, lint, build)",
                required=False,
            ),
            ToolParameter(
                "extra_context",
                "string",
                "Free-form context to pass to the sub-agent",
                required=False,
            ),
        ),
        handler=task,
        mode=ExecutionMode.ASYNC,
    )
