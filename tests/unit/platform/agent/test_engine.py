"""Unit tests for Agent value operations.

Covers creation, appending, tool installation and system prompt
replacement. The run loop is tested in test_run_turn.py.
"""

import pytest

from coding_threads.platform.agent.engine import Agent, AgentStatus
from coding_threads.platform.agent.errors import (
    MultipleSystemMessagesError,
    NoSystemMessageError,
    NotASystemMessageError,
    SystemPromptError,
)
from coding_threads.platform.agent.messages import Message, Role


class TestCreate:
    """Tests for Agent.create."""

    def test_history_starts_with_system_message(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider())
        assert len(agent.messages) == 1
        assert agent.messages[0].role is Role.SYSTEM
        assert agent.status is AgentStatus.IDLE

    def test_installs_given_tools(self, make_agent, scripted_provider, echo_tool):
        agent = make_agent(scripted_provider(), tools=[echo_tool])
        assert [t.name for t in agent.tools] == ["echo"]

    def test_rejects_non_system_message(self, scripted_provider):
        with pytest.raises(NotASystemMessageError):
            Agent.create(name="a", system_message=Message.user("hi"), provider=scripted_provider())

    def test_ids_are_unique(self, make_agent, scripted_provider):
        provider = scripted_provider()
        assert make_agent(provider).id != make_agent(provider).id


class TestAppend:
    """Tests for Agent.append."""

    def test_text_becomes_user_message(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider()).append("hello")
        assert agent.last_message == Message.user("hello")

    def test_appends_message(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider()).append(Message.assistant("hi"))
        assert agent.last_message is not None
        assert agent.last_message.role is Role.ASSISTANT

    def test_original_is_unchanged(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider())
        agent.append("hello")
        assert len(agent.messages) == 1

    def test_keeps_identity(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider())
        assert agent.append("hello").id == agent.id

    def test_exchanged_messages_skip_system(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider()).append("a").append(Message.assistant("b"))
        assert [m.text for m in agent.exchanged_messages] == ["a", "b"]


class TestInstallTools:
    """Tests for Agent.install_tools."""

    def test_extends_tool_set(self, make_agent, scripted_provider, echo_tool, make_async_tool):
        async def ping(arguments, context):
            return "pong"

        agent = make_agent(scripted_provider(), tools=[echo_tool])
        extended = agent.install_tools(make_async_tool("ping", ping))

        assert [t.name for t in extended.tools] == ["echo", "ping"]
        assert [t.name for t in agent.tools] == ["echo"]

    def test_duplicate_name_raises(self, make_agent, scripted_provider, echo_tool):
        agent = make_agent(scripted_provider(), tools=[echo_tool])
        with pytest.raises(ValueError, match="echo"):
            agent.install_tools(echo_tool)


class TestReplaceSystemPrompt:
    """Tests for Agent.replace_system_prompt."""

    def test_replaces_single_system_message(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider()).append("hello")
        replaced = agent.replace_system_prompt(Message.system("New prompt"))

        assert replaced.messages[0] == Message.system("New prompt")
        assert replaced.messages[1:] == agent.messages[1:]

    def test_replacement_keeps_position(self, scripted_provider):
        agent = Agent(
            name="a",
            provider=scripted_provider(),
            messages=(Message.user("first"), Message.system("old"), Message.user("last")),
        )
        replaced = agent.replace_system_prompt(Message.system("new"))
        assert [m.text for m in replaced.messages] == ["first", "new", "last"]

    def test_non_system_replacement(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider())
        with pytest.raises(NotASystemMessageError) as exc_info:
            agent.replace_system_prompt(Message.user("not a prompt"))
        assert exc_info.value.role == Role.USER

    def test_no_system_message(self, scripted_provider):
        agent = Agent(name="a", provider=scripted_provider(), messages=(Message.user("hi"),))
        with pytest.raises(NoSystemMessageError):
            agent.replace_system_prompt(Message.system("new"))

    def test_multiple_system_messages(self, make_agent, scripted_provider):
        agent = make_agent(scripted_provider()).append(Message.system("second"))
        with pytest.raises(MultipleSystemMessagesError) as exc_info:
            agent.replace_system_prompt(Message.system("new"))
        assert exc_info.value.count == 2

    def test_errors_share_base_class(self):
        assert issubclass(NoSystemMessageError, SystemPromptError)
        assert issubclass(MultipleSystemMessagesError, SystemPromptError)
        assert issubclass(NotASystemMessageError, SystemPromptError)
