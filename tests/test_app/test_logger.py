"""
Tests for structured logging
"""

import json
import logging

import pytest

from app.utils.logger import (
    CorrelationIdFilter,
    JSONFormatter,
    get_logger,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Restore root handlers replaced by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="Lap recorded", **attrs):
    record = logging.LogRecord("stopwatch.engine", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON log lines."""

    def test_fields(self):
        record = make_record(correlation_id="run-1", extra_data={"lap": 3})
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Lap recorded"
        assert data["level"] == "INFO"
        assert data["logger"] == "stopwatch.engine"
        assert data["correlation_id"] == "run-1"
        assert data["extra"] == {"lap": 3}


class TestCorrelationIdFilter:
    """Test correlation IDs."""

    def test_adds_id(self):
        record = make_record()
        assert CorrelationIdFilter("run-7").filter(record)
        assert record.correlation_id == "run-7"

    def test_keeps_existing_id(self):
        record = make_record(correlation_id="explicit")
        CorrelationIdFilter("run-7").filter(record)
        assert record.correlation_id == "explicit"


class TestSetupLogging:
    """Test handler configuration."""

    def test_file_output(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "laptimer.log"
        setup_logging(log_level="debug", log_format="json", log_file=str(log_file), enable_console=False)
        set_correlation_id("run-42")

        get_logger("sessions.recorder").info("Saved session")
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = json.loads(log_file.read_text().splitlines()[-1])
        assert line["message"] == "Saved session"
        assert line["correlation_id"] == "run-42"
        assert restore_root_logger.level == logging.DEBUG

    def test_adapter_with_extra_data(self):
        adapter = get_logger("sessions.recorder", extra_data={"session_id": "abc"})
        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.extra == {"extra_data": {"session_id": "abc"}}
