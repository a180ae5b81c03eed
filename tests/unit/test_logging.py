"""
Unit tests for the logging context, formatters and queue handler.
"""

import json
import logging
import queue
import sys

from leaderboard.core.logging.logger import (
    ContextFilter,
    DroppingQueueHandler,
    JSONFormatter,
    LogContext,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("leaderboard.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _filtered(**extra):
    record = _record(**extra)
    ContextFilter().filter(record)
    return record


class TestLogContext:
    """Test ContextVar-backed request context."""

    def test_context_set_and_restored(self):
        with LogContext(component="api", request_id="req-1"):
            inside = _filtered()

        outside = _filtered()

        assert inside.request_id == "req-1"
        assert inside.correlation_id == "req-1"
        assert outside.correlation_id == "N/A"

    async def test_async_context(self):
        async with LogContext(operation="top_n") as ctx:
            record = _filtered()

        assert record.operation == "top_n"
        assert record.request_id == ctx.context["request_id"]

    def test_generated_id_when_none_given(self):
        with LogContext() as ctx:
            assert len(ctx.context["request_id"]) == 8
            assert ctx.context["correlation_id"] == ctx.context["request_id"]

    def test_nested_context_inherits_unset_fields(self):
        with LogContext(component="api", request_id="r1"):
            with LogContext(operation="submit") as inner:
                record = _filtered()

        assert inner.context["request_id"] == "r1"
        assert record.component == "api"
        assert record.operation == "submit"


class TestContextFilter:
    def test_enriches_record(self):
        with LogContext(component="api", operation="GET /scores", request_id="r9"):
            record = _filtered()

        assert record.request_id == "r9"
        assert record.component == "api"
        assert record.operation == "GET /scores"

    def test_explicit_operation_wins(self):
        with LogContext(operation="GET /scores"):
            record = _filtered(operation="submit")

        assert record.operation == "submit"

    def test_defaults_without_context(self):
        record = _filtered()

        assert record.correlation_id == "N/A"
        assert record.component == "leaderboard"


class TestJSONFormatter:
    def test_extra_fields_serialized(self):
        record = _filtered(score=100, entry_name="alice")

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "hello"
        assert payload["extra"] == {"score": 100, "entry_name": "alice"}
        assert "correlation_id" not in payload

    def test_exception_included(self):
        try:
            raise RuntimeError("disk gone")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: disk gone" in payload["exception"]


class TestDroppingQueueHandler:
    def test_full_queue_drops_and_counts(self):
        log_queue = queue.Queue(1)
        handler = DroppingQueueHandler(log_queue)

        handler.handle(_record("first"))
        handler.handle(_record("second"))

        assert log_queue.qsize() == 1
        assert handler.dropped == 1
