"""Static tool sets.

Each set is built from explicit constructors, never by filtering a live
agent's tools. The restricted set is what keeps delegation one level deep:
it never contains task or codebase_search.
"""

from coding_threads.agents.coding.tools.bash import create_bash_tool
from coding_threads.agents.coding.tools.files import (
    create_create_file_tool,
    create_edit_file_tool,
    create_glob_tool,
    create_grep_tool,
    create_list_directory_tool,
    create_read_file_tool,
)
from coding_threads.platform.agent.tools import ToolDefinition


def all_file_tools() -> list[ToolDefinition]:
    return [
        create_read_file_tool(),
        create_edit_file_tool(),
        create_list_directory_tool(),
        create_create_file_tool(),
        create_glob_tool(),
        create_grep_tool(),
    ]


def read_only_tools() -> list[ToolDefinition]:
    return [
        create_read_file_tool(),
        create_list_directory_tool(),
        create_glob_tool(),
        create_grep_tool(),
    ]


def restricted_tools() -> list[ToolDefinition]:
    """Tools a delegated sub-agent may use: file and shell tools only."""
    return [
        create_read_file_tool(),
        create_edit_file_tool(),
        create_list_directory_tool(),
        create_create_file_tool(),
        create_glob_tool(),
        create_bash_tool(),
    ]
