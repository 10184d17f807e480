"""Unit tests for framework-agnostic message types.

This module tests the Message, ToolCall and ToolResult dataclasses and
their JSON serialization.
"""

import pytest

from coding_threads.platform.agent.messages import (
    ContentPart,
    Message,
    Role,
    ToolCall,
    ToolResult,
    message_to_dict,
    thaw,
)


class TestToolCall:
    """Tests for ToolCall dataclass."""

    def test_arguments_are_frozen(self):
        """Arguments cannot be modified after construction."""
        call = ToolCall(call_id="call_1", name="search", arguments={"q": "test"})
        with pytest.raises(TypeError):
            call.arguments["q"] = "other"  # type: ignore[index]

    def test_arguments_are_copied(self):
        """Mutating the source dict does not leak into the call."""
        arguments = {"q": "test", "filters": {"lang": "py"}}
        call = ToolCall(call_id="call_1", name="search", arguments=arguments)

        arguments["q"] = "changed"
        arguments["filters"]["lang"] = "go"

        assert call.arguments["q"] == "test"
        assert call.arguments["filters"]["lang"] == "py"

    def test_nested_lists_become_tuples(self):
        call = ToolCall(call_id="call_1", name="t", arguments={"paths": ["a", "b"]})
        assert call.arguments["paths"] == ("a", "b")

    def test_is_frozen(self):
        call = ToolCall(call_id="call_1", name="search")
        with pytest.raises(AttributeError):
            call.name = "other"  # type: ignore[misc]

    def test_thaw_returns_mutable_copy(self):
        """thaw turns frozen arguments back into plain dicts and lists."""
        call = ToolCall(call_id="call_1", name="t", arguments={"a": {"b": [1, 2]}})
        thawed = thaw(call.arguments)
        assert thawed == {"a": {"b": [1, 2]}}
        assert isinstance(thawed, dict)
        thawed["a"]["b"].append(3)
        assert call.arguments["a"]["b"] == (1, 2)


class TestToolResult:
    """Tests for ToolResult dataclass."""

    def test_from_text_copies_call_identity(self):
        call = ToolCall(call_id="call_7", name="read_file")
        result = ToolResult.from_text(call, "contents")
        assert result.tool_call_id == "call_7"
        assert result.name == "read_file"
        assert result.text == "contents"
        assert result.is_error is False

    def test_from_text_error(self):
        call = ToolCall(call_id="call_7", name="read_file")
        result = ToolResult.from_text(call, "missing", is_error=True)
        assert result.is_error is True

    def test_text_concatenates_parts(self):
        result = ToolResult(
            tool_call_id="c", name="t", content=(ContentPart("a"), ContentPart("b"))
        )
        assert result.text == "ab"


class TestMessage:
    """Tests for Message dataclass."""

    def test_user_factory(self):
        msg = Message.user("Hello")
        assert msg.role is Role.USER
        assert msg.text == "Hello"
        assert msg.tool_calls is None

    def test_system_factory(self):
        msg = Message.system("Be helpful")
        assert msg.role is Role.SYSTEM
        assert msg.text == "Be helpful"

    def test_role_coerced_from_string(self):
        msg = Message(role="assistant", content=(ContentPart("hi"),))  # type: ignore[arg-type]
        assert msg.role is Role.ASSISTANT

    def test_invalid_role_rejected(self):
        with pytest.raises(ValueError):
            Message(role="robot")  # type: ignore[arg-type]

    def test_assistant_without_text_has_no_content(self):
        """A pure tool-call turn carries no content."""
        call = ToolCall(call_id="c", name="t")
        msg = Message.assistant(tool_calls=[call])
        assert msg.content is None
        assert msg.text == ""
        assert msg.has_tool_calls

    def test_assistant_without_calls(self):
        msg = Message.assistant("Done")
        assert msg.tool_calls is None
        assert not msg.has_tool_calls

    def test_only_assistant_carries_tool_calls(self):
        with pytest.raises(ValueError):
            Message(role=Role.USER, tool_calls=(ToolCall(call_id="c", name="t"),))

    def test_only_tool_carries_results(self):
        result = ToolResult.from_text(ToolCall(call_id="c", name="t"), "x")
        with pytest.raises(ValueError):
            Message(role=Role.ASSISTANT, tool_results=(result,))

    def test_sequences_become_tuples(self):
        msg = Message(role=Role.USER, content=[ContentPart("a")])  # type: ignore[arg-type]
        assert isinstance(msg.content, tuple)

    def test_tool_factory_keeps_order(self):
        calls = [ToolCall(call_id=f"c{i}", name="t") for i in range(3)]
        msg = Message.tool(ToolResult.from_text(c, c.call_id) for c in calls)
        assert msg.role is Role.TOOL
        assert [r.tool_call_id for r in msg.tool_results or ()] == ["c0", "c1", "c2"]

    def test_is_frozen(self):
        msg = Message.user("Hello")
        with pytest.raises(AttributeError):
            msg.role = Role.ASSISTANT  # type: ignore[misc]

    def test_metadata_is_frozen(self):
        msg = Message.assistant("hi", metadata={"input_tokens": 3})
        with pytest.raises(TypeError):
            msg.metadata["input_tokens"] = 4  # type: ignore[index]


class TestMessageToDict:
    """Tests for message_to_dict serialization."""

    def test_plain_message(self):
        assert message_to_dict(Message.user("Hello")) == {"role": "user", "content": "Hello"}

    def test_tool_calls(self):
        msg = Message.assistant(
            tool_calls=[ToolCall(call_id="c1", name="grep", arguments={"pattern": "foo"})]
        )
        data = message_to_dict(msg)
        assert data["content"] == ""
        assert data["tool_calls"] == [{"id": "c1", "name": "grep", "args": {"pattern": "foo"}}]

    def test_malformed_call_keeps_error(self):
        msg = Message.assistant(tool_calls=[ToolCall(call_id="c1", name="grep", error="bad JSON")])
        (call,) = message_to_dict(msg)["tool_calls"]
        assert call == {"id": "c1", "name": "grep", "args": {}, "error": "bad JSON"}

    def test_tool_results(self):
        call = ToolCall(call_id="c1", name="grep")
        msg = Message.tool([ToolResult.from_text(call, "No matches found", is_error=False)])
        data = message_to_dict(msg)
        assert data["tool_results"] == [
            {
                "tool_call_id": "c1",
                "name": "grep",
                "content": "No matches found",
                "is_error": False,
            }
        ]

    def test_metadata(self):
        msg = Message.assistant("hi", metadata={"model": "m", "input_tokens": 1})
        assert message_to_dict(msg)["metadata"] == {"model": "m", "input_tokens": 1}
