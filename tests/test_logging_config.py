"""Tests for structured logging."""

import json
import logging

from mealplanner.logging_config import (
    ContextualFormatter,
    LoggingContext,
    StructuredJsonFormatter,
    current_context,
    get_logger,
)


def make_record(message: str = "Fetching recipe page") -> logging.LogRecord:
    return logging.LogRecord(
        name="mealplanner.ingest.fetcher",
        level=logging.INFO,
        pathname="fetcher.py",
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestLoggingContext:
    """Tests for LoggingContext."""

    def test_sets_and_resets(self):
        """Test that values apply inside the block only."""
        assert current_context() == {}

        with LoggingContext(request_id="req-1", source_host="example.com"):
            assert current_context() == {"request_id": "req-1", "source_host": "example.com"}

        assert current_context() == {}

    def test_nested_keeps_outer_values(self):
        """Test that an inner context only overrides what it sets."""
        with LoggingContext(request_id="req-1"):
            with LoggingContext(source_host="example.com"):
                assert current_context() == {
                    "request_id": "req-1",
                    "source_host": "example.com",
                }
            assert current_context() == {"request_id": "req-1"}


class TestFormatters:
    """Tests for log formatters."""

    def test_json_formatter(self):
        """Test that JSON lines carry message and context."""
        with LoggingContext(request_id="req-1", source_host="example.com"):
            line = StructuredJsonFormatter().format(make_record())

        entry = json.loads(line)
        assert entry["message"] == "Fetching recipe page"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
        assert entry["source_host"] == "example.com"
        assert entry["timestamp"].endswith("Z")

    def test_text_formatter(self):
        """Test the readable format."""
        with LoggingContext(source_host="example.com"):
            line = ContextualFormatter().format(make_record())

        assert "INFO" in line
        assert "[host=example.com]" in line
        assert line.endswith("Fetching recipe page")

    def test_text_formatter_without_context(self):
        """Test that no brackets are shown without context."""
        line = ContextualFormatter().format(make_record())
        assert "[" not in line


class TestContextLogger:
    """Tests for ContextLogger."""

    def test_process_adds_context(self):
        """Test that context values are added to extra."""
        logger = get_logger("mealplanner.test")

        with LoggingContext(request_id="req-1"):
            _, kwargs = logger.process("hello", {"extra": {"step": "fetch"}})

        assert kwargs["extra"] == {"request_id": "req-1", "step": "fetch"}
