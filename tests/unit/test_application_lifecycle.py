"""
Unit Tests for the Application Lifecycle
========================================

Test Coverage
-------------
- run(): start abort, normal run, recoverable crash, fatal propagation
- Lifecycle events on the bus
- Non-fatal, fatal and global exception handlers
- Settings, timezone, base path and registry reuse
- Parameters
"""

from datetime import timezone

import pytest

from bootline.application import (
    ApplicationCrashedEvent,
    ApplicationShuttingDownEvent,
    ErrorCategory,
    ErrorOccurredEvent,
    ErrorReport,
    LIFECYCLE_EVENTS,
    FatalErrorEvent,
    LifecycleState,
    Severity,
)
from bootline.config import ConfigLoadError, MemorySource, SettingSource
from bootline.event import Event
from bootline.exceptions import FatalApplicationError
from tests.fixtures.apps import SampleApplication


class UnreadableSource(SettingSource):
    """Source whose backing store fails on every read."""

    def get(self, section, name):
        raise ConfigLoadError("store offline")

    def set(self, section, name, value):
        raise ConfigLoadError("store offline")


def raised(exc):
    try:
        raise exc
    except BaseException as caught:
        return caught


# ============================================================================
# RUN TESTS
# ============================================================================


@pytest.mark.unit
class TestRun:
    """Test the run() state machine."""

    def test_normal_run(self, app):
        """on_start, on_run and on_finish all execute."""
        # Arrange & Act
        result = app.run()

        # Assert
        assert result is True
        assert app.ran
        assert app.finished
        assert not app.crashed
        assert app.state is LifecycleState.TERMINATED

    def test_start_abort(self, app):
        """on_start returning False skips on_run and on_finish."""
        # Arrange
        app.fail_start = True

        # Act
        result = app.run()

        # Assert
        assert result is False
        assert not app.ran
        assert not app.finished
        assert not app.crashed
        assert app.state is LifecycleState.TERMINATED

    def test_recoverable_error(self, app):
        """An exception from on_run crashes the app but run() still finishes."""
        # Arrange
        app.raise_on_run = RuntimeError("boom")

        # Act
        result = app.run()

        # Assert
        assert result is True
        assert app.crashed
        assert app.get_crashed()
        assert app.finished
        report = app.crash_reports[0]
        assert report.category is ErrorCategory.RECOVERABLE
        assert report.message == "RuntimeError, msg: boom"
        assert report.type == "RuntimeError"

    def test_crash_logged_as_critical(self, app, caplog):
        """The recovered exception is logged at CRITICAL."""
        # Arrange
        app.raise_on_run = ValueError("bad row")

        # Act
        with caplog.at_level("DEBUG", logger="bootline"):
            app.run()

        # Assert
        messages = [r.getMessage() for r in caplog.records if r.levelname == "CRITICAL"]
        assert "Exception: ValueError, msg: bad row" in messages

    @pytest.mark.parametrize(
        "fault",
        [MemoryError("out of memory"), FatalApplicationError("cannot continue")],
    )
    def test_fatal_faults_propagate(self, app, fault):
        """Fatal kinds escape run() and skip on_finish."""
        # Arrange
        app.raise_on_run = fault

        # Act & Assert
        with pytest.raises(type(fault)):
            app.run()

        assert not app.finished
        assert not app.crashed

    def test_crashed_is_sticky(self, app):
        """Once set, crashed stays True."""
        # Arrange
        report = ErrorReport(category=ErrorCategory.RECOVERABLE, message="first")

        # Act
        app.on_crash(report)
        app.on_crash(report)

        # Assert
        assert app.crashed

    def test_missing_listener_table(self, app):
        """Without a table, starting registers a broadcaster and no listeners."""
        # Arrange & Act
        app.run()

        # Assert
        metrics = app.bus.metrics()
        assert metrics.total_listeners == 0
        assert len(app.bus.emitter.broadcasters) == 1


# ============================================================================
# EVENT TESTS
# ============================================================================


@pytest.mark.unit
class TestLifecycleEvents:
    """Test events announced on the application's bus."""

    @pytest.fixture
    def observed(self, settings_data, bus):
        """Application on an explicit bus plus the events it emitted."""
        received = []
        for name in [event_type.name for event_type in LIFECYCLE_EVENTS] + ["sample.ran"]:
            bus.register_listener(name, received.append)
        application = SampleApplication("1.0.0", MemorySource(settings_data), bus=bus)
        return application, received

    def test_shutdown_announced(self, observed):
        """A normal run emits the app's own event, then the shutdown event."""
        # Arrange
        application, received = observed

        # Act
        application.run()

        # Assert
        assert [type(event) for event in received] == [Event, ApplicationShuttingDownEvent]

    def test_crash_announced_with_report(self, observed):
        """on_crash emits the report as a dict."""
        # Arrange
        application, received = observed
        application.raise_on_run = KeyError("id")

        # Act
        application.run()

        # Assert
        crashed = [e for e in received if isinstance(e, ApplicationCrashedEvent)]
        assert len(crashed) == 1
        assert crashed[0].error["category"] == "recoverable"
        assert crashed[0].error["type"] == "KeyError"
        assert isinstance(received[-1], ApplicationShuttingDownEvent)

    def test_error_announced(self, observed):
        """error_handler emits ErrorOccurredEvent."""
        # Arrange
        application, received = observed

        # Act
        application.error_handler(Severity.WARNING, "slow disk", "/app/io.py", 9)

        # Assert
        assert received == [
            ErrorOccurredEvent(error_no=Severity.WARNING, message="slow disk", file="/app/io.py", line=9)
        ]

    def test_fatal_announced(self, observed, capsys):
        """fatal_handler emits the crash and the fatal error event."""
        # Arrange
        application, received = observed

        # Act
        application.fatal_handler(raised(MemoryError("heap exhausted")))

        # Assert
        assert [type(e) for e in received] == [ApplicationCrashedEvent, FatalErrorEvent]
        assert received[1].type == "Fatal Error"
        assert received[1].message == "heap exhausted"
        assert received[1].file == __file__

    def test_lifecycle_event_names(self):
        """Every lifecycle event has a distinct application.* registry key."""
        # Arrange & Act
        names = [event_type.name for event_type in LIFECYCLE_EVENTS]

        # Assert
        assert names == [
            "application.crashed",
            "application.shutting_down",
            "application.error",
            "application.fatal_error",
        ]


# ============================================================================
# HANDLER TESTS
# ============================================================================


@pytest.mark.unit
class TestHandlers:
    """Test the non-fatal, fatal and global handlers."""

    def test_error_handler_formats_message(self, app):
        """The message names the label, text, file and line."""
        # Arrange & Act
        result = app.error_handler(Severity.NOTICE, "deprecated call", "/app/x.py", 12)

        # Assert
        assert result is True
        assert app.error_messages == ["Python Notice:  deprecated call in /app/x.py on line 12"]
        assert not app.crashed

    def test_error_handler_unknown_code(self, app):
        """Unknown codes use the generic label."""
        # Arrange & Act
        app.error_handler(77, "odd", "f.py", 1)

        # Assert
        assert app.error_messages[0].startswith("Python Unknown Error:  odd")

    @pytest.mark.parametrize("fault", [None, ValueError("ordinary"), SystemExit(0)])
    def test_fatal_handler_ignores_non_fatal(self, app, fault, capsys):
        """Nothing is reported without a fatal fault."""
        # Arrange & Act
        report = app.fatal_handler(fault)

        # Assert
        assert report is None
        assert not app.crashed
        assert capsys.readouterr().err == ""

    def test_fatal_handler_reports_recorded_fault(self, app, capsys):
        """The last fault recorded by the process hooks is reported."""
        # Arrange
        app.set_handle_errors(True)
        app.init_error_handlers()
        app.process_error_handler.record_fault(raised(RecursionError("too deep")))

        # Act
        report = app.fatal_handler()

        # Assert
        assert report.type == "Fatal Error"
        assert report.category is ErrorCategory.FATAL
        assert app.crashed
        err = capsys.readouterr().err
        assert "FATAL ERROR" in err
        assert "too deep" in err

    def test_global_exception_handler_exits(self, app, capsys):
        """An uncaught exception is reported and the process exits with 1."""
        # Arrange
        exc = raised(LookupError("no such tenant"))

        # Act
        with pytest.raises(SystemExit) as exit_info:
            app.global_exception_handler(exc)

        # Assert
        assert exit_info.value.code == 1
        assert app.crashed
        assert app.crash_reports[0].trace
        err = capsys.readouterr().err.lower()
        assert "lookuperror" in err
        assert "no such tenant" in err
        assert "file:" in err
        assert "line:" in err

    def test_web_context_renders_html(self, app, monkeypatch):
        """Outside the command line, reports are HTML."""
        # Arrange
        monkeypatch.setenv("GATEWAY_INTERFACE", "CGI/1.1")

        # Act
        html = app.beautify_exception(raised(ValueError("<b>")))

        # Assert
        assert html.startswith("<!DOCTYPE html>")
        assert "&lt;b&gt;" in html

    def test_error_handlers_not_installed_by_default(self, app):
        """Without flags run() installs nothing."""
        # Arrange & Act
        app.run()

        # Assert
        assert app.process_error_handler is None
        assert not app.will_handle_errors()
        assert not app.will_handle_fatal()


# ============================================================================
# SETTINGS TESTS
# ============================================================================


@pytest.mark.unit
class TestSettings:
    """Test settings resolution at construction time."""

    def test_base_path_from_settings(self, app, tmp_path):
        """system.base_path sets the base path."""
        # Arrange & Act & Assert
        assert app.get_base_path() == str(tmp_path)
        assert app.get_setting_manager() is app.get_registry_object("Settings")

    def test_base_path_from_environment(self, monkeypatch, tmp_path):
        """SYSTEM_BASE_PATH is the default base path."""
        # Arrange
        monkeypatch.setenv("SYSTEM_BASE_PATH", str(tmp_path))

        # Act
        application = SampleApplication("1.0.0", MemorySource())

        # Assert
        assert application.get_base_path() == str(tmp_path)

    def test_env_fallback(self, monkeypatch):
        """Values missing from the source come from the environment."""
        # Arrange
        monkeypatch.setenv("REPORTS_OUTPUT", "/srv/out")

        # Act
        application = SampleApplication("1.0.0", MemorySource())

        # Assert
        assert application.get_setting("reports", "output") == "/srv/out"

    def test_dotenv_in_base_path(self, tmp_path, monkeypatch):
        """The .env file in the base path is part of the fallback."""
        # Arrange
        monkeypatch.delenv("REPORTS_FORMAT", raising=False)
        (tmp_path / ".env").write_text("REPORTS_FORMAT=csv\n")

        # Act
        application = SampleApplication(
            "1.0.0", MemorySource({"system": {"base_path": str(tmp_path)}})
        )

        # Assert
        assert application.get_setting("reports", "format") == "csv"

    def test_unusable_source_falls_back_to_environment(self, monkeypatch):
        """A source that fails to read is replaced by the environment."""
        # Arrange
        monkeypatch.setenv("SYSTEM_TIMEZONE", "UTC")

        # Act
        application = SampleApplication("1.0.0", UnreadableSource())

        # Assert
        assert application.get_setting("system", "timezone") == "UTC"

    def test_registry_reuse(self, app):
        """A second application reuses the registered settings."""
        # Arrange & Act
        second = SampleApplication("2.0.0", MemorySource({"custom": {"key": "ignored"}}))

        # Assert
        assert second.get_setting_manager() is app.get_setting_manager()
        assert second.get_setting("custom", "key") is None
        assert second.get_base_path() == "."

    def test_set_setting_writes_primary(self, app):
        """set_setting is visible through get_setting."""
        # Arrange & Act
        app.set_setting("reports", "limit", 10)

        # Assert
        assert app.get_setting("reports", "limit") == 10
        assert app.get_setting("reports", "missing", "default") == "default"

    @pytest.mark.parametrize("name", [None, "UTC", "utc", "Not/AZone"])
    def test_timezone_defaults_to_utc(self, name):
        """Missing, UTC and unknown zone names resolve to UTC."""
        # Arrange
        data = {"system": {"timezone": name}} if name else {}

        # Act
        application = SampleApplication("1.0.0", MemorySource(data))

        # Assert
        assert application.get_timezone() is timezone.utc

    def test_listeners_path_setting(self):
        """events.listeners_path overrides the listener directory."""
        # Arrange & Act
        application = SampleApplication(
            "1.0.0", MemorySource({"events": {"listeners_path": "/etc/app"}})
        )

        # Assert
        assert application.get_event_listeners_path() == "/etc/app"

    def test_logging_section_configures_logging(self, mocker, tmp_path):
        """The logging section is turned into a LoggingConfig."""
        # Arrange
        setup = mocker.patch("bootline.application.base.setup_logging")
        data = {
            "system": {"base_path": str(tmp_path)},
            "logging": {"level": "WARNING", "format": "json", "file": "logs/app.log"},
        }

        # Act
        SampleApplication("1.0.0", MemorySource(data))

        # Assert
        config = setup.call_args.args[0]
        assert config.level_name == "WARNING"
        assert config.use_json
        assert config.file_path == str(tmp_path / "logs" / "app.log")

    def test_logging_left_alone_without_section(self, mocker):
        """No logging settings means no logging setup."""
        # Arrange
        setup = mocker.patch("bootline.application.base.setup_logging")

        # Act
        SampleApplication("1.0.0", MemorySource())

        # Assert
        setup.assert_not_called()


# ============================================================================
# PARAMETER TESTS
# ============================================================================


@pytest.mark.unit
class TestParameters:
    """Test parameter access."""

    def test_mapping_parameters(self, app):
        """Named parameters are looked up by key."""
        # Arrange & Act
        app.run({"date": "2025-01-31"})

        # Assert
        assert app.get_parameters() == {"date": "2025-01-31"}
        assert app.get_parameter("date") == "2025-01-31"
        assert app.get_parameter("missing", "fallback") == "fallback"

    def test_sequence_parameters(self, app):
        """Positional parameters are looked up by index."""
        # Arrange & Act
        app.run(["--verbose"])

        # Assert
        assert app.get_parameter(0) == "--verbose"
        assert app.get_parameter(3) is None
        assert app.get_parameter("name") is None

    def test_defaults_to_empty(self, app):
        """Without parameters, an empty mapping is used."""
        # Arrange & Act
        app.run()

        # Assert
        assert app.get_parameters() == {}
        assert app.get_version() == "1.0.0"
