"""Unit tests for the bash tool."""

import pytest

from coding_threads.agents.coding.tools.bash import (
    OUTPUT_CHAR_LIMIT,
    bash,
    create_bash_tool,
    format_result,
)
from coding_threads.platform.agent.tools import ExecutionMode, ToolContext, ToolError


@pytest.fixture
def context(tmp_path) -> ToolContext:
    return ToolContext(working_dir=tmp_path)


class TestBash:
    """Tests for the bash handler."""

    def test_runs_in_working_dir(self, tmp_path, context):
        result = bash({"cmd": "pwd"}, context)
        assert result.startswith("Result of pwd:\nOutput (not truncated):\n")
        assert str(tmp_path.resolve()) in result

    def test_cwd_override(self, tmp_path, context):
        sub = tmp_path / "sub"
        sub.mkdir()
        assert str(sub.resolve()) in bash({"cmd": "pwd", "cwd": str(sub)}, context)

    def test_relative_cwd_rejected(self, context):
        with pytest.raises(ToolError, match="must be absolute"):
            bash({"cmd": "pwd", "cwd": "sub"}, context)

    def test_stderr_is_captured(self, context):
        assert "oops" in bash({"cmd": "echo oops >&2"}, context)

    def test_non_zero_exit_is_an_error(self, context):
        with pytest.raises(ToolError) as exc_info:
            bash({"cmd": "echo failing; exit 3"}, context)
        message = str(exc_info.value)
        assert message.startswith("Exit code 3\n")
        assert "failing" in message

    def test_blank_command(self, context):
        with pytest.raises(ToolError):
            bash({"cmd": "   "}, context)


class TestFormatResult:
    def test_short_output(self):
        assert format_result("ls", "a\nb") == "Result of ls:\nOutput (not truncated):\na\nb"

    def test_keeps_tail_of_long_output(self):
        output = "x" * 10 + "y" * OUTPUT_CHAR_LIMIT

        result = format_result("cat big", output)

        assert f"(truncated to last {OUTPUT_CHAR_LIMIT} chars)" in result
        assert result.endswith("y" * OUTPUT_CHAR_LIMIT)
        assert "x" not in result.split(":\n", 2)[-1]


class TestCreateBashTool:
    def test_definition(self):
        tool = create_bash_tool()
        assert tool.name == "bash"
        assert tool.mode is ExecutionMode.SYNC
        assert tool.json_schema()["required"] == ["cmd"]
