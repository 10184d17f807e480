"""Shell command tool."""

import os
import subprocess
from pathlib import Path
from typing import Any

from coding_threads.platform.agent.tools import (
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolParameter,
)

OUTPUT_CHAR_LIMIT = 50_000
COMMAND_TIMEOUT_SECONDS = 300

DESCRIPTION = f"""Executes the given shell command with `sh -c`.

1. Working directory:
   - Without `cwd`, the command runs in the thread's working directory.
   - To run elsewhere, set `cwd` to an absolute path instead of using `cd`.

2. Multiple independent commands:
   - Do NOT chain independent commands with `;`, make separate tool calls instead.

3. Quoting:
   - ALWAYS quote file paths with double quotes (eg. cat "path with spaces/file.txt").

4. Truncated output:
   - Only the last {OUTPUT_CHAR_LIMIT} characters of the output are returned.
   - When the output is truncated, run the command again with a grep or head filter.

5. Stateless environment:
   - Environment variables and `cd` only affect a single command.

6. Never start blocking commands such as servers or daemons. Commands are killed
   after {COMMAND_TIMEOUT_SECONDS} seconds.

Prefer the dedicated tools: glob and grep to search, read_file rather than cat, and
edit_file rather than sed. Only create git commits when the user asked for it.
"""


def format_result(command: str, output: str) -> str:
    if len(output) > OUTPUT_CHAR_LIMIT:
        info = f"(truncated to last {OUTPUT_CHAR_LIMIT} chars)"
        output = output[-OUTPUT_CHAR_LIMIT:]
    else:
        info = "(not truncated)"
    return f"Result of {command}:\nOutput {info}:\n{output}"


def bash(arguments: dict[str, Any], context: ToolContext) -> str:
    command = arguments.get("cmd")
    if not command or not str(command).strip():
        raise ToolError("`cmd` is required and cannot be blank")

    cwd = arguments.get("cwd")
    if cwd:
        if not os.path.isabs(cwd):
            raise ToolError("`cwd` must be absolute")
        workdir = Path(cwd)
    else:
        workdir = context.working_dir
    if not workdir.is_dir():
        raise ToolError(f"Directory {workdir} does not exist")

    try:
        completed = subprocess.run(
            ["sh", "-c", command],
            cwd=workdir,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=COMMAND_TIMEOUT_SECONDS,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolError(f"Command timed out after {COMMAND_TIMEOUT_SECONDS}s: {command}") from e

    result = format_result(command, completed.stdout or "")
    if completed.returncode != 0:
        raise ToolError(f"Exit code {completed.returncode}\n{result}")
    return result


def create_bash_tool() -> ToolDefinition:
    return ToolDefinition(
        name="bash",
        description=DESCRIPTION,
        parameters=(
            ToolParameter("cmd", "string", "The shell command to execute"),
            ToolParameter("cwd", "string", "Absolute path to the working directory", required=False),
        ),
        handler=bash,
    )
