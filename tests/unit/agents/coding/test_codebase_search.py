"""Unit tests for the codebase_search tool."""

import pytest

from coding_threads.agents.coding.tools.codebase_search import create_codebase_search_tool
from coding_threads.platform.agent.engine import Agent
from coding_threads.platform.agent.messages import Message
from coding_threads.platform.agent.tools import ExecutionMode, ToolContext, ToolError


@pytest.fixture
def context(tmp_path) -> ToolContext:
    return ToolContext(working_dir=tmp_path)


def _factory(provider):
    def factory(name: str, context: ToolContext) -> Agent:
        return Agent.create(name, Message.system("Base prompt"), provider, context=context)

    return factory


class TestCodebaseSearch:
    def test_definition(self, scripted_provider):
        tool = create_codebase_search_tool(_factory(scripted_provider()))
        assert tool.name == "codebase_search"
        assert tool.mode is ExecutionMode.ASYNC
        assert tool.json_schema()["required"] == ["query"]

    async def test_returns_final_answer(self, scripted_provider, tool_call_message, context):
        provider = scripted_provider(
            tool_call_message(("grep", {"pattern": "x-api-key"})),
            Message.assistant("src/api/auth.py"),
        )
        tool = create_codebase_search_tool(_factory(provider))

        answer = await tool.handler({"query": "Where do we check the x-api-key header?"}, context)

        assert answer == "src/api/auth.py"
        messages, tool_names = provider.calls[0]
        assert messages[0].text.startswith("You are a powerful code search agent")
        assert messages[1].text == "Where do we check the x-api-key header?"
        assert set(tool_names) == {"read_file", "list_directory", "glob", "grep"}

    async def test_missing_query(self, scripted_provider, context):
        tool = create_codebase_search_tool(_factory(scripted_provider()))
        with pytest.raises(ToolError, match="query"):
            await tool.handler({}, context)

    async def test_search_failure(self, scripted_provider, context):
        provider = scripted_provider(TimeoutError("model timed out"))
        tool = create_codebase_search_tool(_factory(provider))

        with pytest.raises(ToolError, match="Search failed: model timed out"):
            await tool.handler({"query": "anything"}, context)

    async def test_empty_answer(self, scripted_provider, context):
        provider = scripted_provider(Message.assistant())
        tool = create_codebase_search_tool(_factory(provider))

        with pytest.raises(ToolError, match="without an answer"):
            await tool.handler({"query": "anything"}, context)
