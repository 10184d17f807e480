"""File system tools: read, create, edit, list, glob and grep."""

import difflib
import glob as globlib
import os
import re
from pathlib import Path
from typing import Any

from coding_threads.platform.agent.tools import (
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolParameter,
)

READ_FILE_LINES = 1000
GREP_MAX_MATCHES = 200
GREP_MAX_LINE_LENGTH = 300

IGNORED_DIRS = frozenset(
    {
        "node_modules",
        "_build",
        "build",
        "deps",
        "__pycache__",
        ".venv",
        "venv",
        ".git",
        ".idea",
        ".vscode",
        ".cache",
        ".log",
        ".elixir_ls",
    }
)

_MAGIC_CHARS = frozenset("*?[")


def _require(arguments: dict[str, Any], name: str) -> Any:
    value = arguments.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ToolError(f"`{name}` is required and cannot be blank")
    return value


def _absolute(arguments: dict[str, Any], name: str = "path") -> Path:
    path = _require(arguments, name)
    if not os.path.isabs(path):
        raise ToolError(f"`{name}` must be absolute")
    return Path(path)


def _is_ignored(relative: str) -> bool:
    """Whether a relative path crosses a hidden or vendored directory."""
    return any(part.startswith(".") or part in IGNORED_DIRS for part in Path(relative).parts)


def read_file(arguments: dict[str, Any], context: ToolContext) -> str:
    path = _absolute(arguments)
    try:
        start_line = max(int(arguments.get("start_line") or 1), 1)
    except (TypeError, ValueError) as e:
        raise ToolError("`start_line` must be an integer") from e

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError as e:
        raise ToolError(f"{path} does not exist") from e
    except IsADirectoryError as e:
        raise ToolError(f"{path} is a directory, use list_directory") from e
    except OSError as e:
        raise ToolError(f"Failed to read {path}: {e.strerror}") from e

    lines = content.split("\n")
    window = lines[start_line - 1 : start_line - 1 + READ_FILE_LINES]
    return "\n".join(f"{idx}: {line}" for idx, line in enumerate(window, start=start_line))


def create_file(arguments: dict[str, Any], context: ToolContext) -> str:
    path = _absolute(arguments)
    content = arguments.get("content")
    if content is None:
        raise ToolError("`content` is required")
    if not path.parent.is_dir():
        raise ToolError(f"Directory {path.parent} does not exist")
    try:
        path.write_text(str(content), encoding="utf-8")
    except OSError as e:
        raise ToolError(f"Failed to write {path}: {e.strerror}") from e
    return f"File written to {path}"


def _changed_lines(original: list[str], updated: list[str]) -> tuple[int, int]:
    """1-based range of lines of the updated file that differ from the original."""
    changed = [
        (j1, j2)
        for tag, _, _, j1, j2 in difflib.SequenceMatcher(a=original, b=updated).get_opcodes()
        if tag != "equal"
    ]
    if not changed:
        return 0, 0
    start = changed[0][0] + 1
    end = max(changed[-1][1], start)
    return start, end


def edit_file(arguments: dict[str, Any], context: ToolContext) -> str:
    path = _absolute(arguments)
    old = arguments.get("old_str")
    new = arguments.get("new_str")
    if old is None or new is None:
        raise ToolError("`old_str` and `new_str` are required")
    replace_all = bool(arguments.get("replace_all", False))

    if not path.is_file():
        raise ToolError(f"{path} does not exist")
    if old == new:
        raise ToolError("`old_str` and `new_str` must differ")

    original = path.read_text(encoding="utf-8")
    occurrences = original.count(old) if old else 0
    if occurrences == 0:
        raise ToolError("`old_str` not found in file")
    if occurrences > 1 and not replace_all:
        raise ToolError(
            f"`old_str` appears {occurrences} times in file. "
            "Add surrounding context to make it unique or set `replace_all`"
        )

    updated = original.replace(old, new) if replace_all else original.replace(old, new, 1)
    path.write_text(updated, encoding="utf-8")

    original_lines = original.splitlines(keepends=True)
    updated_lines = updated.splitlines(keepends=True)
    diff = "".join(
        difflib.unified_diff(
            original_lines, updated_lines, fromfile=str(path), tofile=str(path), n=2
        )
    )
    start, end = _changed_lines(original_lines, updated_lines)
    return f"```diff\n{diff}```\n\n**Changed lines:** [{start}, {end}]"


def list_directory(arguments: dict[str, Any], context: ToolContext) -> str:
    path = _absolute(arguments)
    if not path.is_dir():
        raise ToolError(f"{path} is not a directory")
    entries = sorted(entry.name for entry in path.iterdir())
    return "\n".join(entries) if entries else "[]"


def _split_pattern(pattern: str, working_dir: Path) -> tuple[Path, str]:
    """Split a pattern into the directory it is rooted at and its magic part."""
    if not os.path.isabs(pattern):
        return working_dir, pattern
    parts = Path(pattern).parts
    for idx, part in enumerate(parts):
        if _MAGIC_CHARS & set(part):
            return Path(*parts[:idx]), str(Path(*parts[idx:]))
    return Path(*parts[:-1]), parts[-1]


def _mtime(path: str) -> float:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return 0.0


def glob(arguments: dict[str, Any], context: ToolContext) -> str:
    pattern = str(arguments.get("filePattern") or "").strip()
    if not pattern:
        return "No pattern provided"
    try:
        offset = max(int(arguments.get("offset") or 0), 0)
        limit = arguments.get("limit")
        limit = int(limit) if limit is not None else None
    except (TypeError, ValueError) as e:
        raise ToolError("`limit` and `offset` must be integers") from e

    root, relative_pattern = _split_pattern(pattern, context.working_dir)
    matches = [
        str(root / match)
        for match in globlib.glob(
            relative_pattern, root_dir=root, recursive=True, include_hidden=True
        )
        if not _is_ignored(match)
    ]
    matches.sort(key=_mtime, reverse=True)
    matches = matches[offset:]
    if limit is not None and limit > 0:
        matches = matches[:limit]
    return "\n".join(matches) if matches else "Nothing found"


def _iter_files(root: Path, include: str | None):
    if root.is_file():
        yield root
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in IGNORED_DIRS)
        for filename in sorted(filenames):
            if include and not Path(filename).match(include):
                continue
            yield Path(dirpath) / filename


def grep(arguments: dict[str, Any], context: ToolContext) -> str:
    pattern = _require(arguments, "pattern")
    root = _absolute(arguments) if arguments.get("path") else context.working_dir
    include = arguments.get("include")
    case_sensitive = bool(arguments.get("caseSensitive", False))
    try:
        regex = re.compile(pattern, 0 if case_sensitive else re.IGNORECASE)
    except re.error as e:
        raise ToolError(f"Invalid regex: {e}") from e
    if not root.exists():
        raise ToolError(f"{root} does not exist")

    results: list[str] = []
    for path in _iter_files(root, include):
        try:
            with path.open(encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if regex.search(line):
                        text = line.rstrip("\n")[:GREP_MAX_LINE_LENGTH]
                        results.append(f"{path}:{lineno}: {text}")
                        if len(results) >= GREP_MAX_MATCHES:
                            results.append(f"(stopped after {GREP_MAX_MATCHES} matches)")
                            return "\n".join(results)
        except (UnicodeDecodeError, OSError):
            # Binary or unreadable file
            continue
    return "\n".join(results) if results else "No matches found"


def create_read_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="read_file",
        description=(
            "Read a file from the file system. If the file doesn't exist, an error is returned.\n\n"
            "* The `path` parameter must be an absolute path.\n"
            f"* Returns up to {READ_FILE_LINES} lines starting at `start_line`. To read more, "
            "call it again with a later `start_line`.\n"
            "* Use grep to find specific content in large files.\n"
            "* If you are unsure of the correct file path, use glob to look up filenames.\n"
            "* Each line is prefixed by its line number, e.g. `1: abc`.\n"
            "* When possible, read all the files you need in parallel."
        ),
        parameters=(
            ToolParameter("path", "string", "Absolute file path to read from"),
            ToolParameter(
                "start_line",
                "integer",
                "1-based start line of the range to read",
                required=False,
                default=1,
            ),
        ),
        handler=read_file,
    )


def create_create_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="create_file",
        description=(
            "Create or overwrite a file in the workspace. Prefer this tool over edit_file "
            "when you want to overwrite the entire contents of a file."
        ),
        parameters=(
            ToolParameter("path", "string", "Absolute file path to create or overwrite"),
            ToolParameter("content", "string", "Content to write to the file"),
        ),
        handler=create_file,
    )


def create_edit_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="edit_file",
        description=(
            "Make edits to a text file by replacing `old_str` with `new_str`.\n\n"
            "Returns a unified diff of the change and the changed line range.\n"
            "The file must exist, use create_file for new files. `old_str` must exist in "
            "the file and differ from `new_str`. Unless `replace_all` is set, `old_str` must "
            "be unique within the file: add surrounding lines to make it unique."
        ),
        parameters=(
            ToolParameter("path", "string", "Absolute path of the file to edit"),
            ToolParameter("old_str", "string", "String to replace"),
            ToolParameter("new_str", "string", "Replacement string"),
            ToolParameter(
                "replace_all",
                "boolean",
                "Replace every occurrence (default: false)",
                required=False,
                default=False,
            ),
        ),
        handler=edit_file,
    )


def create_list_directory_tool() -> ToolDefinition:
    return ToolDefinition(
        name="list_directory",
        description=(
            "List the entries of a directory, sorted by name. Returns `[]` for an empty "
            "directory."
        ),
        parameters=(ToolParameter("path", "string", "Absolute directory path to list"),),
        handler=list_directory,
    )


def create_glob_tool() -> ToolDefinition:
    return ToolDefinition(
        name="glob",
        description=(
            "Find files by glob pattern, most recently modified first. Relative patterns are "
            "resolved against the working directory. Hidden and dependency directories "
            "(node_modules, build, .git, ...) are skipped."
        ),
        parameters=(
            ToolParameter("filePattern", "string", "Glob pattern (e.g., '**/*.py')"),
            ToolParameter(
                "limit", "integer", "Maximum number of results to return", required=False
            ),
            ToolParameter(
                "offset",
                "integer",
                "Number of initial results to skip",
                required=False,
                default=0,
            ),
        ),
        handler=glob,
    )


def create_grep_tool() -> ToolDefinition:
    return ToolDefinition(
        name="grep",
        description=(
            "Search file contents with a regular expression. Returns `path:line: text` "
            f"matches, at most {GREP_MAX_MATCHES}. Searches the working directory unless "
            "`path` is given."
        ),
        parameters=(
            ToolParameter("pattern", "string", "Regular expression to search for"),
            ToolParameter(
                "path", "string", "Absolute file or directory to search in", required=False
            ),
            ToolParameter(
                "include", "string", "Only search files matching this glob (e.g., '*.py')",
                required=False,
            ),
            ToolParameter(
                "caseSensitive",
                "boolean",
                "Match case (default: false)",
                required=False,
                default=False,
            ),
        ),
        handler=grep,
    )
