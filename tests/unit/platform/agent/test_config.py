"""Unit tests for agent configuration dataclasses."""

import pytest

from coding_threads.platform.agent.config import (
    AgentConfig,
    AgentIdentity,
    LlmConfig,
    RunMode,
)


class TestLlmConfig:
    """Tests for LlmConfig dataclass."""

    def test_defaults(self):
        config = LlmConfig(model="litellm_proxy/anthropic/claude-sonnet-4-5")
        assert config.api_key is None
        assert config.base_url is None
        assert config.temperature == 0.7

    def test_is_frozen(self):
        config = LlmConfig(model="m")
        with pytest.raises(AttributeError):
            config.model = "other"  # type: ignore[misc]


class TestAgentConfig:
    """Tests for AgentConfig dataclass."""

    def test_defaults(self):
        config = AgentConfig()
        assert config.max_turns == 25
        assert config.max_consecutive_failures == 3

    def test_recursion_limit_covers_all_turns(self):
        """Each turn takes a model and a tools superstep, plus a final model step."""
        config = AgentConfig(max_turns=10)
        assert config.recursion_limit >= 2 * config.max_turns + 1


class TestRunMode:
    def test_values(self):
        assert RunMode("while_needs_response") is RunMode.WHILE_NEEDS_RESPONSE
        assert RunMode("until_success") is RunMode.UNTIL_SUCCESS
        assert RunMode("until_tool_used") is RunMode.UNTIL_TOOL_USED


class TestAgentIdentity:
    def test_fields(self):
        identity = AgentIdentity(name="Coding Agent", description="Writes code", slug="coding")
        assert identity.slug == "coding"
