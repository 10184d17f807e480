"""LLM client implementation using LiteLLM."""

from collections.abc import Sequence
from typing import Any

import litellm
from langchain_core.messages import AIMessage
from langchain_litellm import ChatLiteLLM
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from coding_threads.platform.agent.config import LlmConfig
from coding_threads.platform.agent.langchain import (
    LangChainMessageConverter,
    to_langchain_tools,
)
from coding_threads.platform.agent.messages import Message
from coding_threads.platform.agent.metrics import record_agent_tokens
from coding_threads.platform.agent.tools import ToolDefinition

TRANSIENT_ERRORS = (
    litellm.APIConnectionError,
    litellm.Timeout,
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


class LlmClient:
    """Chat provider backed by ChatLiteLLM.

    Provides a consistent interface for LLM interactions with:
    - Conversion between engine messages and LangChain messages
    - Per-call tool binding
    - Automatic token metrics recording
    - Retries on transient provider failures
    """

    def __init__(
        self,
        agent_slug: str,
        model_name: str,
        api_key: str | None,
        api_base: str | None,
        temperature: float,
        llm=None,
    ):
        """Initialize the LLM client.

        Args:
            agent_slug: Agent label used for token metrics
            model_name: Model identifier, as routed by the LiteLLM proxy
            api_key: API key for authentication
            api_base: Base URL for the LLM proxy
            temperature: Sampling temperature
            llm: Optional pre-configured chat model (tests inject fakes here)
        """
        self._agent_slug = agent_slug
        self._model_name = model_name
        self._llm = llm or ChatLiteLLM(
            model_name=model_name,
            api_key=api_key,
            api_base=api_base,
            temperature=temperature,
        )

    @classmethod
    def from_config(cls, agent_slug: str, config: LlmConfig) -> "LlmClient":
        return cls(
            agent_slug=agent_slug,
            model_name=config.model,
            api_key=config.api_key,
            api_base=config.base_url,
            temperature=config.temperature,
        )

    @property
    def model_name(self) -> str:
        """The model name/identifier."""
        return self._model_name

    @staticmethod
    def extract_tokens(message: AIMessage) -> tuple[int, int]:
        """Extract token counts from an AIMessage's usage metadata.

        Args:
            message: AIMessage from LLM response

        Returns:
            Tuple of (input_tokens, output_tokens), defaults to (0, 0) if unavailable
        """
        usage = getattr(message, "usage_metadata", None)
        if not usage:
            return 0, 0
        return usage.get("input_tokens", 0), usage.get("output_tokens", 0)

    async def complete(
        self, messages: Sequence[Message], tools: Sequence[ToolDefinition]
    ) -> Message:
        """Send the history and tool schemas, return the assistant reply.

        Retries up to 3 times with 2-second delays on transient failures.

        Raises:
            Exception: Whatever the provider raised once retries are exhausted
        """
        response = await self._ainvoke(
            LangChainMessageConverter.to_langchain(messages),
            to_langchain_tools(tools),
        )
        input_tokens, output_tokens = self.extract_tokens(response)
        record_agent_tokens(
            self._agent_slug,
            self._model_name,
            input_tokens,
            output_tokens,
        )
        metadata = {
            "model": self._model_name,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
        }
        return LangChainMessageConverter.from_langchain(response, metadata)

    @retry(
        wait=wait_fixed(2),
        stop=(stop_after_attempt(3) | stop_after_delay(30)),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _ainvoke(self, messages: list[Any], tools: list[dict[str, Any]]) -> AIMessage:
        llm = self._llm.bind_tools(tools) if tools else self._llm
        return await llm.ainvoke(messages)
