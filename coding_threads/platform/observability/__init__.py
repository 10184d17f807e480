"""Observability infrastructure module.

This module provides monitoring and error tracking for thread processes:
- Structured logging attributed to the request and the thread
- Prometheus metrics
- Bugsnag error reporting tagged with the thread
- OpenTelemetry tracing
"""

from coding_threads.platform.observability.logging import (
    configure_logging,
    correlation_id_ctx,
    get_logger,
    thread_name_ctx,
    use_correlation_id,
)
from coding_threads.platform.observability.metrics import (
    BUCKETS,
    prometheus_middleware,
)

__all__ = [
    "BUCKETS",
    "configure_logging",
    "correlation_id_ctx",
    "get_logger",
    "prometheus_middleware",
    "thread_name_ctx",
    "use_correlation_id",
]
