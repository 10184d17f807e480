from coding_threads.agents.coding.tools.bash import create_bash_tool
from coding_threads.agents.coding.tools.codebase_search import create_codebase_search_tool
from coding_threads.agents.coding.tools.report import REPORT_TOOL_NAME, create_report_tool
from coding_threads.agents.coding.tools.task import (
    DelegationError,
    SubAgentDelegator,
    create_task_tool,
)
from coding_threads.agents.coding.tools.toolsets import (
    all_file_tools,
    read_only_tools,
    restricted_tools,
)

__all__ = [
    "REPORT_TOOL_NAME",
    "DelegationError",
    "SubAgentDelegator",
    "all_file_tools",
    "create_bash_tool",
    "create_codebase_search_tool",
    "create_report_tool",
    "create_task_tool",
    "read_only_tools",
    "restricted_tools",
]
