"""Agent-specific Prometheus metrics.

Turn durations and outcomes, tool call durations and outcomes, and token
usage per model. All metrics are registered on the default registry and
exposed through the /metrics endpoint.
"""

from time import monotonic
from typing import NamedTuple

import prometheus_client

from coding_threads.platform.observability.metrics import BUCKETS


class AgentMetricsLabels(NamedTuple):
    agent: str


class ToolMetricsLabels(NamedTuple):
    agent: str
    tool_name: str


agent_turn_histogram = prometheus_client.Histogram(
    name="agent_turn_duration_seconds",
    documentation="Duration of one conversation turn (seconds)",
    labelnames=(*AgentMetricsLabels._fields, "status"),
    buckets=BUCKETS,
)

tool_call_histogram = prometheus_client.Histogram(
    name="agent_tool_call_duration_seconds",
    documentation="Duration of one tool call (seconds)",
    labelnames=(*ToolMetricsLabels._fields, "status"),
    buckets=BUCKETS,
)

agent_tokens_counter = prometheus_client.Counter(
    name="agent_tokens",
    documentation="Tokens consumed by agents",
    labelnames=("agent", "model", "direction"),
)

agents_created_counter = prometheus_client.Counter(
    name="agents_created",
    documentation="Conversation engine instances created",
    labelnames=AgentMetricsLabels._fields,
)


def _status(error: bool) -> str:
    return "error" if error else "success"


def record_tool_call(labels: ToolMetricsLabels, duration: float, error: bool = False) -> None:
    """Record a single tool call duration and outcome."""
    tool_call_histogram.labels(*labels, _status(error)).observe(duration)


def record_agent_tokens(agent: str, model: str, input_tokens: int, output_tokens: int) -> None:
    """Record token usage, skipping zero counts."""
    if input_tokens > 0:
        agent_tokens_counter.labels(agent, model, "input").inc(input_tokens)
    if output_tokens > 0:
        agent_tokens_counter.labels(agent, model, "output").inc(output_tokens)


def record_agent_created(labels: AgentMetricsLabels) -> None:
    agents_created_counter.labels(*labels).inc()


class collect_agent_metrics:
    """Async context manager timing a conversation turn.

    Usage:
        ```
        async with collect_agent_metrics(AgentMetricsLabels("coding")):
            await agent.run_turn()
        ```
    """

    def __init__(self, labels: AgentMetricsLabels):
        self.labels = labels
        self._start = 0.0

    async def __aenter__(self) -> "collect_agent_metrics":
        self._start = monotonic()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        agent_turn_histogram.labels(*self.labels, _status(exc_type is not None)).observe(
            monotonic() - self._start
        )
        return False
