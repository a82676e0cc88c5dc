"""
Tests for observability/logging.py - structlog setup.
"""
import json
import logging
from unittest.mock import Mock, patch

import pytest
import structlog

from observability import logging as holder_logging
from observability.logging import (
    LogContext,
    LoggingConfig,
    add_service_context,
    add_trace_context,
    bind_context,
    get_logger,
    setup_logging,
)


@pytest.fixture
def fresh_logging():
    """Allow setup_logging to run again and restore defaults afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    holder_logging._configured = False
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    holder_logging._configured = False


class TestProcessors:
    """Tests for the custom processors."""

    def test_service_context(self):
        processor = add_service_context("api", "testing")
        event = processor(None, "info", {"event": "x"})
        assert event["service"] == "api"
        assert event["environment"] == "testing"

    def test_trace_context_with_recording_span(self):
        span = Mock()
        span.is_recording.return_value = True
        ctx = span.get_span_context.return_value
        ctx.is_valid = True
        ctx.trace_id = 1
        ctx.span_id = 2

        with patch("opentelemetry.trace.get_current_span", return_value=span):
            event = add_trace_context(None, "info", {"event": "x"})

        assert event["trace_id"] == format(1, "032x")
        assert event["span_id"] == format(2, "016x")

    def test_trace_context_without_span(self):
        event = add_trace_context(None, "info", {"event": "x"})
        assert "trace_id" not in event


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_output(self, fresh_logging, capsys):
        setup_logging(LoggingConfig(service_name="holder-test", json_format=True))
        get_logger("holder").info("item loaded", name="db")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "item loaded"
        assert record["name"] == "db"
        assert record["service"] == "holder-test"
        assert record["level"] == "info"

    def test_level_applied_to_root(self, fresh_logging):
        setup_logging(LoggingConfig(level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

    def test_setup_is_idempotent(self, fresh_logging):
        setup_logging(LoggingConfig(level="DEBUG"))
        setup_logging(LoggingConfig(level="ERROR"))
        assert logging.getLogger().level == logging.DEBUG

    def test_log_file(self, fresh_logging, tmp_path):
        log_file = tmp_path / "logs" / "holder.log"
        setup_logging(LoggingConfig(log_to_console=False, log_to_file=True, log_file_path=log_file))
        get_logger("holder").info("item destroyed", name="db")
        logging.getLogger().handlers[0].flush()

        assert "item destroyed" in log_file.read_text()


class TestContext:
    """Tests for bound context."""

    def test_log_context(self):
        """Fields are bound inside the block and removed after it."""
        with LogContext(holder="api"):
            assert structlog.contextvars.get_contextvars() == {"holder": "api"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_bind_context_merged(self):
        bind_context(holder="api")
        event = structlog.contextvars.merge_contextvars(None, "info", {"event": "x"})
        assert event["holder"] == "api"
