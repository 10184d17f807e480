"""Thread supervision Prometheus metrics."""

import prometheus_client

threads_active_gauge = prometheus_client.Gauge(
    name="threads_active",
    documentation="Thread processes currently supervised",
)

thread_restarts_counter = prometheus_client.Counter(
    name="thread_restarts",
    documentation="Thread processes restarted after a crash",
)

thread_crashes_counter = prometheus_client.Counter(
    name="thread_crashes",
    documentation="Thread processes that terminated abnormally",
)

notifications_dropped_counter = prometheus_client.Counter(
    name="thread_notifications_dropped",
    documentation="Notifications dropped because a subscriber queue was full",
    labelnames=("kind",),
)
