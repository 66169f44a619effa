"""
Unit Tests for the Logging Subsystem
====================================

Test Coverage
-------------
- JSON rendering of records, context and extras
- Context propagation through LogContext / scoped_log_context
- setup_logging / shutdown_logging handler bookkeeping
"""

import json
import logging

import pytest

from bootline.logging import (
    JSONFormatter,
    LogContext,
    LoggingConfig,
    clear_log_context,
    get_log_context,
    get_logging_health,
    scoped_log_context,
    set_log_context,
    setup_logging,
    shutdown_logging,
)
from bootline.logging.logger import ContextFilter


def make_record(msg="hello", **extra):
    record = logging.LogRecord(
        name="bootline.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ============================================================================
# FORMATTER TESTS
# ============================================================================


@pytest.mark.unit
class TestJSONFormatter:
    """Test the canonical structured representation."""

    def test_renders_core_fields(self):
        """Timestamp, level, logger and message are always present."""
        # Arrange
        formatter = JSONFormatter()

        # Act
        data = json.loads(formatter.format(make_record()))

        # Assert
        assert data["level"] == "INFO"
        assert data["logger"] == "bootline.test"
        assert data["message"] == "hello"
        assert "timestamp" in data

    def test_context_and_extra_fields(self):
        """Context attributes are top-level; other extras are nested."""
        # Arrange
        formatter = JSONFormatter()
        record = make_record(event_name="ping", correlation_id="N/A", listener_id="a.B")

        # Act
        data = json.loads(formatter.format(record))

        # Assert
        assert data["event_name"] == "ping"
        assert "correlation_id" not in data
        assert data["extra"] == {"listener_id": "a.B"}


# ============================================================================
# CONTEXT TESTS
# ============================================================================


@pytest.mark.unit
class TestLogContext:
    """Test ContextVar-backed context propagation."""

    def test_log_context_sets_and_restores(self):
        """Leaving the block restores the previous context."""
        # Arrange
        clear_log_context()

        # Act
        with LogContext(application="Importer", operation="run", correlation_id="abc"):
            inside = get_log_context()
        outside = get_log_context()

        # Assert
        assert inside["application"] == "Importer"
        assert inside["correlation_id"] == "abc"
        assert outside == {}

    def test_scoped_context_layers_fields(self):
        """scoped_log_context adds to the current context."""
        # Arrange
        set_log_context(application="Importer")

        # Act
        with scoped_log_context(event_name="ping"):
            inside = get_log_context()

        # Assert
        assert inside == {"application": "Importer", "event_name": "ping"}
        assert get_log_context() == {"application": "Importer"}

    def test_filter_fills_missing_attributes_only(self):
        """Explicit record attributes are never overwritten."""
        # Arrange
        context_filter = ContextFilter()
        record = make_record(event_name="explicit")

        # Act
        with scoped_log_context(event_name="ambient", operation="dispatch"):
            context_filter.filter(record)

        # Assert
        assert record.event_name == "explicit"
        assert record.operation == "dispatch"
        assert record.component == "bootline"


# ============================================================================
# SETUP TESTS
# ============================================================================


@pytest.mark.unit
class TestSetupLogging:
    """Test installation and removal of the queue handler."""

    def test_config_properties(self):
        """Level names resolve; unknown names fall back to INFO."""
        # Arrange & Act & Assert
        assert LoggingConfig(level_name="debug").level == logging.DEBUG
        assert LoggingConfig(level_name="nonsense").level == logging.INFO
        assert LoggingConfig(console_format="json").use_json

    def test_setup_and_shutdown_manage_only_own_handlers(self, tmp_path):
        """Foreign handlers survive; our queue handler comes and goes."""
        # Arrange
        root = logging.getLogger()
        previous_level = root.level
        before = list(root.handlers)
        log_file = tmp_path / "logs" / "app.log"

        try:
            # Act
            setup_logging(LoggingConfig(level_name="INFO", file_path=str(log_file)))
            added = [h for h in root.handlers if h not in before]
            health = get_logging_health()
            logging.getLogger("bootline.test").info("written", extra={"k": "v"})
        finally:
            shutdown_logging()
            root.setLevel(previous_level)

        # Assert
        assert len(added) == 1
        assert health.initialized
        assert root.handlers == before
        assert not get_logging_health().initialized
        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["message"] == "written"
        assert line["extra"]["k"] == "v"
