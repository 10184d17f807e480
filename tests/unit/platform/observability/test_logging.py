"""Unit tests for the logging context processors."""

from coding_threads.platform.observability.logging import (
    add_correlation_id,
    add_thread_name,
    correlation_id_ctx,
    thread_name_ctx,
    use_correlation_id,
)


class TestProcessors:
    def test_entries_outside_any_context_are_untouched(self):
        event = {"event": "hello"}
        assert add_thread_name(None, "info", add_correlation_id(None, "info", event)) == {
            "event": "hello"
        }

    def test_adds_thread_and_correlation_id(self):
        correlation_token = correlation_id_ctx.set("req-1")
        thread_token = thread_name_ctx.set("red-sweaty-potato")
        try:
            event = add_thread_name(None, "info", add_correlation_id(None, "info", {}))
        finally:
            thread_name_ctx.reset(thread_token)
            correlation_id_ctx.reset(correlation_token)

        assert event == {"correlation_id": "req-1", "thread_name": "red-sweaty-potato"}

    def test_explicit_thread_name_wins(self):
        token = thread_name_ctx.set("a")
        try:
            event = add_thread_name(None, "info", {"thread_name": "b"})
        finally:
            thread_name_ctx.reset(token)

        assert event["thread_name"] == "b"


class TestUseCorrelationId:
    def test_sets_and_restores(self):
        with use_correlation_id("req-2"):
            assert correlation_id_ctx.get() == "req-2"
        assert correlation_id_ctx.get() is None

    def test_none_keeps_current(self):
        token = correlation_id_ctx.set("outer")
        try:
            with use_correlation_id(None):
                assert correlation_id_ctx.get() == "outer"
        finally:
            correlation_id_ctx.reset(token)
