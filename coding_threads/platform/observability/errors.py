"""Bugsnag error reporting integration.

Errors are reported from ERROR-level log entries. Each report is tagged with
the conversation thread and the HTTP request it happened in, read from the
logging context variables.
"""

import logging

import bugsnag
from bugsnag.handlers import BugsnagHandler

from coding_threads.platform.observability.logging import correlation_id_ctx, thread_name_ctx

METADATA_TAB = "coding_threads"


def add_thread_metadata(event) -> None:
    """Bugsnag callback attaching the current thread and correlation ID.

    The thread name becomes the event context, which groups a thread's
    errors together in the dashboard.
    """
    thread_name = thread_name_ctx.get()
    correlation_id = correlation_id_ctx.get()
    if thread_name:
        event.context = f"thread:{thread_name}"
    if thread_name or correlation_id:
        event.add_tab(
            METADATA_TAB,
            {"thread_name": thread_name, "correlation_id": correlation_id},
        )


async def initialize_bugsnag(api_key: str, release_stage: str) -> None:
    """Initialize Bugsnag error reporting.

    Configures Bugsnag with the provided API key, tags reports with the
    thread they come from, and attaches a handler to the root logger to
    report ERROR-level log entries (thread crashes, failed turns' faults).

    Args:
        api_key: Bugsnag project API key
        release_stage: Environment identifier (e.g., "production", "development", "local")

    Note:
        No-op when release_stage is "local" to avoid reporting during local development.
    """
    if release_stage == "local":
        return
    logger = logging.getLogger()
    bugsnag.configure(
        api_key=api_key,
        release_stage=release_stage,
        auto_notify=True,
    )
    bugsnag.before_notify(add_thread_metadata)
    handler = BugsnagHandler()
    handler.setLevel(logging.ERROR)
    logger.addHandler(handler)
