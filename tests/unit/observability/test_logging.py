"""Unit tests for observability logging."""

from __future__ import annotations

import logging

import structlog
from structlog.testing import capture_logs

from pageable.application.pagination import build_query_spec, parse_sort
from pageable.observability.logging import JsonLoggerFactory, get_logger


# ---------------------------------------------------------------------------
# get_logger
# ---------------------------------------------------------------------------


class TestGetLogger:
    def test_emits_event(self) -> None:
        with capture_logs() as logs:
            get_logger("test.logger").info("hello", answer=42)
        assert logs == [{"event": "hello", "answer": 42, "log_level": "info"}]

    def test_initial_values_are_bound(self) -> None:
        with capture_logs() as logs:
            get_logger("test.logger", endpoint="/items").warning("slow")
        assert logs[0]["endpoint"] == "/items"


# ---------------------------------------------------------------------------
# Diagnostics emitted while parsing
# ---------------------------------------------------------------------------


class TestParsingDiagnostics:
    def test_ignored_value_is_logged(self) -> None:
        with capture_logs() as logs:
            build_query_spec({"page": "abc"})
        ignored = [log for log in logs if log["event"] == "value_ignored"]
        assert ignored == [
            {"event": "value_ignored", "field": "page", "value": "abc", "source": "query", "log_level": "debug"}
        ]

    def test_offset_overflow_is_logged(self) -> None:
        with capture_logs() as logs:
            build_query_spec({"page": str(2**52), "limit": "100"})
        assert any(log["event"] == "offset_out_of_range" for log in logs)

    def test_malformed_sort_token_is_logged(self) -> None:
        with capture_logs() as logs:
            parse_sort(["property[id];", "garbage"])
        assert [log["token"] for log in logs if log["event"] == "sort_token_ignored"] == ["garbage"]


# ---------------------------------------------------------------------------
# JsonLoggerFactory
# ---------------------------------------------------------------------------


class TestJsonLoggerFactory:
    def test_configure_sets_root_level_and_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            JsonLoggerFactory.configure(level=logging.WARNING)
            assert root.level == logging.WARNING
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        finally:
            structlog.reset_defaults()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
