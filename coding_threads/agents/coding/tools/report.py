"""Sentinel tool a delegated sub-agent calls to hand its result back."""

from typing import Any

from coding_threads.platform.agent.tools import ToolContext, ToolDefinition, ToolParameter

REPORT_TOOL_NAME = "report"
REPORT_FIELDS = ("summary", "details", "artifacts", "followups")


def report(arguments: dict[str, Any], context: ToolContext) -> str:
    """Serialize the report as `key: value` lines for the non-empty fields."""
    lines = []
    for key in REPORT_FIELDS:
        value = arguments.get(key)
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


def create_report_tool() -> ToolDefinition:
    return ToolDefinition(
        name=REPORT_TOOL_NAME,
        description=(
            "Finish your sub-task and report results back to the parent agent. "
            "Call it exactly once, when you are done."
        ),
        parameters=(
            ToolParameter("summary", "string", "Concise overview of what you accomplished"),
            ToolParameter("details", "string", "Key steps taken and results"),
            ToolParameter("artifacts", "string", "Files created or modified", required=False),
            ToolParameter("followups", "string", "Suggested next steps", required=False),
        ),
        handler=report,
    )
