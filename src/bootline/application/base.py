"""
Application lifecycle for bootline.

Purpose
-------
`Application` drives one run of a program through a fixed sequence::

    Constructed -> ErrorHandlersInstalled -> Starting -> Running
                -> Finishing -> Terminated

with an orthogonal ``crashed`` flag that is set the first time `on_crash`
runs.

Responsibilities
----------------
- Resolve settings (primary source + environment fallback) and store them
  in the process registry
- Configure logging and the timezone from settings
- Install process-level error hooks when asked to (`ProcessErrorHandler`)
- Load the listener table and run initializers in `on_start`
- Absorb recoverable errors raised by `on_run`; always run `on_finish`
- Announce crashes, non-fatal errors, fatal errors and shutdown on the bus

Extension Points
----------------
- `on_run` (mandatory)
- `on_start`, `on_finish`, `on_error`, `on_crash`
- `format_fatal_error`, `beautify_exception`

Notes
-----
`run()` returns True whenever `on_finish` is reached, including after a
recovered crash. Inspect `crashed` to detect failure.
"""

from __future__ import annotations

import os
import sys
import traceback
from abc import ABC, abstractmethod
from datetime import timezone, tzinfo
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bootline.application.errors import (
    FATAL_FAULT_TYPES,
    ErrorCategory,
    ErrorReport,
    ProcessErrorHandler,
    exception_location,
    exception_message,
    fatal_type_name,
    is_fatal_fault,
    severity_label,
)
from bootline.application.events import (
    ApplicationCrashedEvent,
    ApplicationShuttingDownEvent,
    ErrorOccurredEvent,
    FatalErrorEvent,
)
from bootline.application.initializers import InitializerRunner
from bootline.application.reporting import format_exception_report
from bootline.application.reporting import format_fatal_error as render_fatal_error
from bootline.config import ConfigError, EnvSource, SettingManager, SettingSource
from bootline.event import EventBus, EventLoader, event_bus
from bootline.logging.logger import LogContext, LoggingConfig, get_logger, setup_logging
from bootline.registry import registry
from bootline.utils.system import is_command_line

logger = get_logger(__name__)

SETTINGS_REGISTRY_KEY = "Settings"


class LifecycleState(str, Enum):
    CONSTRUCTED = "constructed"
    ERROR_HANDLERS_INSTALLED = "error_handlers_installed"
    STARTING = "starting"
    RUNNING = "running"
    FINISHING = "finishing"
    TERMINATED = "terminated"


class Application(ABC):
    """
    Base class for bootline applications.

    Examples
    --------
    >>> class Report(Application):
    ...     def on_run(self):
    ...         build_report(self.get_parameter("date"))
    >>> app = Report("1.0.0", YamlSource("config/application.yaml"))
    >>> app.set_handle_fatal(True)
    >>> app.run({"date": "2025-01-31"})
    True
    """

    def __init__(
        self,
        version: str,
        source: Optional[SettingSource] = None,
        *,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._base_path = "."
        self._registry = registry
        self._bus = bus if bus is not None else event_bus
        self._version = version
        self._parameters: Any = {}
        self._settings: Optional[SettingManager] = None
        self._handle_errors = False
        self._handle_fatal = False
        self._crashed = False
        self._process_errors: Optional[ProcessErrorHandler] = None
        self._state = LifecycleState.CONSTRUCTED

        self._init_settings(source)

        self._timezone = self._resolve_timezone(self.get_setting("system", "timezone"))
        self._event_listeners_path = str(self.get_setting("events", "listeners_path") or "")

        self.init_logger()

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def crashed(self) -> bool:
        return self._crashed

    def get_crashed(self) -> bool:
        return self._crashed

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def process_error_handler(self) -> Optional[ProcessErrorHandler]:
        return self._process_errors

    def get_version(self) -> str:
        return self._version

    def get_base_path(self) -> str:
        return self._base_path

    def set_base_path(self, base_path: str) -> Application:
        self._base_path = str(base_path)
        return self

    def get_event_listeners_path(self) -> str:
        return self._event_listeners_path

    def set_event_listeners_path(self, path: str) -> Application:
        self._event_listeners_path = str(path)
        return self

    def get_timezone(self) -> tzinfo:
        return self._timezone

    def will_handle_errors(self) -> bool:
        return self._handle_errors

    def set_handle_errors(self, handle_errors: bool) -> Application:
        self._handle_errors = handle_errors
        return self

    def will_handle_fatal(self) -> bool:
        return self._handle_fatal

    def set_handle_fatal(self, handle_fatal: bool) -> Application:
        self._handle_fatal = handle_fatal
        return self

    def is_command_line(self) -> bool:
        return is_command_line()

    # ------------------------------------------------------------------ #
    # Settings
    # ------------------------------------------------------------------ #

    def set_setting_source(self, source: SettingSource) -> Application:
        self._settings = SettingManager(source)
        return self

    def get_setting(self, section: str, name: str, default: Any = None) -> Any:
        if self._settings is None:
            return default
        return self._settings.get(section, name, default)

    def set_setting(self, section: str, name: str, value: Any) -> None:
        if self._settings is None:
            raise ConfigError("No settings source configured")
        self._settings.set(section, name, value)

    def get_setting_manager(self) -> Optional[SettingManager]:
        return self._settings

    def _init_settings(self, source: Optional[SettingSource]) -> None:
        existing = self._registry.get(SETTINGS_REGISTRY_KEY)
        if existing is not None:
            self._settings = existing
            return

        default_base_path = os.environ.get("SYSTEM_BASE_PATH") or "."
        self.set_base_path(default_base_path)
        fallback = EnvSource(Path(default_base_path) / ".env")

        if source is None:
            self._settings = SettingManager(fallback)
        else:
            try:
                self._settings = SettingManager(source)
                base_path = str(self.get_setting("system", "base_path") or default_base_path)
                self._settings.set_fallback(EnvSource(Path(base_path) / ".env"))
                self.set_base_path(base_path)
            except ConfigError as exc:
                logger.warning(
                    "Settings source unusable; using environment only",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                self._settings = SettingManager(fallback)

        self._registry.set(SETTINGS_REGISTRY_KEY, self._settings)

    @staticmethod
    def _resolve_timezone(name: Any) -> tzinfo:
        if not name or str(name).upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone; using UTC", extra={"timezone": str(name)})
            return timezone.utc

    def init_logger(self) -> None:
        """
        Configure logging from the ``logging`` settings section.

        Recognised names: ``level``, ``format`` (text, json, color) and
        ``file`` (relative to the base path). With none of them set, logging
        is left to the host.
        """
        if self._settings is None:
            return

        section = self._settings.get_section("logging")
        level = section.get("level")
        console_format = section.get("format")
        file_name = section.get("file")

        if not (level or console_format or file_name):
            return

        file_path = None
        if file_name:
            file_path = str(Path(self._base_path) / str(file_name))

        setup_logging(
            LoggingConfig(
                level_name=str(level or "DEBUG"),
                console_format=str(console_format or "text"),
                file_path=file_path,
            )
        )

    # ------------------------------------------------------------------ #
    # Registry / parameters
    # ------------------------------------------------------------------ #

    def set_registry_object(self, name: str, value: Any) -> None:
        self._registry.set(name, value)

    def get_registry_object(self, name: str) -> Any:
        return self._registry.get(name)

    def get_parameters(self) -> Any:
        return self._parameters

    def get_parameter(self, name: Any, default: Any = None) -> Any:
        try:
            return self._parameters[name]
        except (KeyError, IndexError, TypeError):
            return default

    # ------------------------------------------------------------------ #
    # Lifecycle hooks
    # ------------------------------------------------------------------ #

    def on_start(self) -> bool:
        """Load the listener table and run initializers. False aborts the run."""
        logger.debug("on_start()")

        self.init_events()
        self.execute_initializers()
        return True

    @abstractmethod
    def on_run(self) -> None:
        """Business logic of the application."""

    def on_finish(self) -> None:
        logger.debug("on_finish()")
        self._bus.emit(ApplicationShuttingDownEvent())

    def on_error(self, message: str) -> bool:
        """
        Called for every non-fatal runtime signal.

        The return value is informational; execution always continues.
        """
        logger.error(f"on_error(): {message}")
        return True

    def on_crash(self, report: ErrorReport) -> None:
        self._crashed = True
        logger.critical(f"on_crash(): {report.message}", extra={"report": report.to_dict()})
        self._bus.emit(ApplicationCrashedEvent(error=report.to_dict()))

    def init_events(self) -> None:
        logger.debug("init_events()")
        EventLoader(self, bus=self._bus).init_events()

    def execute_initializers(self) -> None:
        logger.debug("execute_initializers()")
        InitializerRunner(self).execute()

    # ------------------------------------------------------------------ #
    # Process-level handlers
    # ------------------------------------------------------------------ #

    def init_error_handlers(self) -> None:
        if not (self._handle_errors or self._handle_fatal):
            return

        self._process_errors = ProcessErrorHandler(
            self,
            handle_errors=self._handle_errors,
            handle_fatal=self._handle_fatal,
        )
        self._process_errors.install()
        self._state = LifecycleState.ERROR_HANDLERS_INSTALLED

    def error_handler(self, error_no: int, message: str, file: str, line: int) -> bool:
        """Route a non-fatal runtime signal to `on_error`. Always returns True."""
        label = severity_label(error_no)
        self.on_error(f"Python {label}:  {message} in {file} on line {line}")
        self._bus.emit(ErrorOccurredEvent(error_no=error_no, message=message, file=file, line=line))
        return True

    def fatal_handler(self, fault: Optional[BaseException] = None) -> Optional[ErrorReport]:
        """
        Report the last recorded fault if it is a fatal one.

        Anything else (no fault, `SystemExit`, `KeyboardInterrupt`, ordinary
        exceptions) is ignored and None is returned.
        """
        if fault is None and self._process_errors is not None:
            fault = self._process_errors.last_fault

        if fault is None or not is_fatal_fault(fault):
            return None

        type_name = fatal_type_name(fault)
        report = ErrorReport.from_exception(fault, ErrorCategory.FATAL, type_name=type_name)

        self.on_crash(report)
        self._bus.emit(
            FatalErrorEvent(
                type=type_name,
                message=report.message,
                file=report.file or "unknown",
                line=report.line or 0,
            )
        )

        sys.stderr.write(
            self.format_fatal_error(type_name, report.message, report.file or "unknown", report.line or 0)
        )
        sys.stderr.flush()
        return report

    def global_exception_handler(self, exc: BaseException) -> NoReturn:
        """Report an uncaught exception and exit with status 1."""
        report = ErrorReport.from_exception(exc, ErrorCategory.FATAL, with_trace=True)
        self.on_crash(report)

        sys.stderr.write(self.beautify_exception(exc))
        sys.stderr.flush()
        sys.exit(1)

    def format_fatal_error(self, type_name: str, message: str, file: str, line: int) -> str:
        return render_fatal_error(
            type_name, message, file, line, command_line=self.is_command_line()
        )

    def beautify_exception(self, exc: BaseException) -> str:
        file, line = exception_location(exc)
        trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip()
        return format_exception_report(
            type(exc).__name__,
            exception_message(exc),
            file,
            line,
            trace,
            command_line=self.is_command_line(),
        )

    # ------------------------------------------------------------------ #
    # Run
    # ------------------------------------------------------------------ #

    def run(self, parameters: Any = None) -> bool:
        """
        Execute the lifecycle.

        Returns
        -------
        bool:
            False when `on_start` aborted the run, True otherwise.
        """
        self.init_error_handlers()
        self._parameters = parameters if parameters is not None else {}

        with LogContext(application=type(self).__name__, operation="run"):
            self._state = LifecycleState.STARTING
            if not self.on_start():
                logger.critical("on_start() returned False. Aborting.")
                self._state = LifecycleState.TERMINATED
                return False

            self._state = LifecycleState.RUNNING
            try:
                logger.debug(f"Running application v{self._version}..")
                self.on_run()
            except FATAL_FAULT_TYPES:
                raise
            except Exception as exc:
                message = f"{type(exc).__name__}, msg: {exception_message(exc)}"
                logger.critical(f"Exception: {message}", exc_info=True)

                file, line = exception_location(exc)
                self.on_crash(
                    ErrorReport(
                        category=ErrorCategory.RECOVERABLE,
                        message=message,
                        type=type(exc).__name__,
                        file=file,
                        line=line,
                    )
                )

            self._state = LifecycleState.FINISHING
            self.on_finish()
            self._state = LifecycleState.TERMINATED
            return True
