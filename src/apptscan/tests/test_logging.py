"""
Tests for structured logging and stage timing.
"""
import json
import logging

import pytest

from apptscan.logging_config import (
    JSONFormatter,
    PrettyJSONFormatter,
    generate_request_id,
    setup_logging,
)
from apptscan.perf import StageTimer


def make_record(message="Stage finished", **extra):
    record = logging.LogRecord("apptscan.pipeline", logging.INFO, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_single_line_with_extras(self):
        """Test extra fields land in the JSON object."""
        line = JSONFormatter().format(make_record(request_id="abc12345", stage="extraction",
                                                  duration_ms=4.2))
        data = json.loads(line)
        assert data["message"] == "Stage finished"
        assert data["level"] == "INFO"
        assert data["request_id"] == "abc12345"
        assert data["stage"] == "extraction"
        assert data["duration_ms"] == 4.2
        assert data["timestamp"].endswith("Z")
        assert "\n" not in line

    def test_non_serializable_extras_skipped(self):
        """Test objects that are not JSON-safe are left out."""
        data = json.loads(JSONFormatter().format(make_record(engine=object())))
        assert "engine" not in data

    def test_exception_included(self):
        """Test exception tracebacks are rendered."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = logging.LogRecord("apptscan", logging.ERROR, __file__, 1, "failed", (),
                                       sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]


class TestPrettyJSONFormatter:
    """Tests for PrettyJSONFormatter."""

    def test_context_inline(self):
        """Test context fields are shown inline."""
        line = PrettyJSONFormatter().format(make_record(request_id="abc12345", duration_ms=3.1))
        assert "Stage finished" in line
        assert "request_id=abc12345" in line
        assert "duration_ms=3.1" in line


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_handlers_replaced(self, tmp_path):
        """Test repeated setup does not stack handlers."""
        log_file = tmp_path / "logs" / "apptscan.log"
        setup_logging("apptscan-test", "DEBUG", "pretty", str(log_file))
        logger = setup_logging("apptscan-test", "DEBUG", "pretty", str(log_file))
        assert len(logger.handlers) == 2
        assert isinstance(logger.handlers[0].formatter, PrettyJSONFormatter)
        assert isinstance(logger.handlers[1].formatter, JSONFormatter)
        assert not logger.propagate
        assert log_file.parent.exists()
        for handler in logger.handlers:
            handler.close()

    def test_request_id(self):
        """Test request IDs are short and unique."""
        first, second = generate_request_id(), generate_request_id()
        assert len(first) == 8
        assert first != second


class TestStageTimer:
    """Tests for StageTimer."""

    def test_records_duration(self):
        """Test the stage duration is stored in the trace."""
        trace = {}
        with StageTimer(trace, "preprocess", request_id="abc12345"):
            pass
        assert trace["timings"]["preprocess"] >= 0

    def test_exceptions_propagate(self):
        """Test errors are never suppressed and timing is still recorded."""
        trace = {}
        with pytest.raises(ValueError):
            with StageTimer(trace, "extraction"):
                raise ValueError("bad")
        assert "extraction" in trace["timings"]

    def test_budget_override(self):
        """Test an explicit budget replaces the default."""
        assert StageTimer({}, "extraction", budget_ms=5).budget_ms == 5
        assert StageTimer({}, "unknown-stage").budget_ms is None
