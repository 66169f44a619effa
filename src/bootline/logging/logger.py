"""
bootline Logging Subsystem

Purpose
-------
Provide the logging stack used by every bootline component:

- Structured JSON logs for aggregation and analysis.
- LogContext-based propagation of run/operation context via ContextVars.
- Correlation IDs for end-to-end traceability of one application run.
- Queue-backed delivery (QueueHandler + QueueListener) so file I/O never
  happens on the caller's stack.
- Console output as JSON, colored human text, or plain text.
- Lightweight internal metrics and health inspection.

Responsibilities
----------------
- Configure the root logger from a `LoggingConfig`.
- Enrich all log records with contextual fields:
  - application, component, operation
  - correlation_id, event_name
- Provide simple helper APIs:
  - get_logger()
  - LogContext (context manager)
  - set_log_context() / clear_log_context()
  - get_logging_health()
- Degrade gracefully when the logging queue is overloaded or handlers fail.

Design Decisions
----------------
- Nothing is configured at import time. Applications call `setup_logging()`
  (the `Application` base does so when its settings carry a `logging`
  section); without it records simply propagate to whatever the host set up.
- `setup_logging()` only ever removes handlers it installed itself, so host
  handlers (pytest's caplog, a web server's handlers) survive.
- JSONFormatter is the canonical file representation.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


# ============================================================================
# Run / Operation Context (ContextVars)
# ============================================================================

_run_context: ContextVar[Dict[str, Any]] = ContextVar(
    "run_context",
    default={},
)


# ============================================================================
# Config
# ============================================================================


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for the logging subsystem."""

    level_name: str = "INFO"
    console_format: str = "text"
    file_path: Optional[str] = None

    CONSOLE_PATTERN: str = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    QUEUE_MAX_SIZE: int = 10_000

    @property
    def level(self) -> int:
        level = logging.getLevelName(str(self.level_name).upper())
        return level if isinstance(level, int) else logging.INFO

    @property
    def use_json(self) -> bool:
        return self.console_format.strip().lower() == "json"

    @property
    def use_colors(self) -> bool:
        return (
            self.console_format.strip().lower() == "color"
            and sys.stdout.isatty()
        )


# ============================================================================
# Logging Metrics / Health
# ============================================================================


@dataclass(slots=True)
class LoggingMetrics:
    records_enqueued: int = 0
    records_dropped: int = 0
    listener_errors: int = 0


@dataclass(frozen=True, slots=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int
    listener_errors: int


_logging_metrics: LoggingMetrics = LoggingMetrics()
_log_queue: Optional["queue.Queue[logging.LogRecord]"] = None
_queue_listener: Optional[QueueListener] = None
_installed_handlers: List[logging.Handler] = []


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context: Dict[str, Any] = _run_context.get({})

        defaults = {
            "application": context.get("application", "N/A"),
            "correlation_id": context.get("correlation_id", "N/A"),
            "component": context.get("component") or record.name.split(".", 1)[0],
            "operation": context.get("operation", "N/A"),
            "event_name": context.get("event_name", "N/A"),
        }
        # Explicit `extra=` fields win over the ambient context.
        for attr, value in defaults.items():
            if not hasattr(record, attr):
                setattr(record, attr, value)

        return True


class ColoredFormatter(logging.Formatter):
    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        original = record.levelname
        prefix = self.COLORS.get(original, "")
        reset = self.COLORS["RESET"] if prefix else ""

        if prefix:
            record.levelname = f"{prefix}{original}{reset}"

        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    STANDARD_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }

    CONTEXT_ATTRS = {
        "application",
        "correlation_id",
        "component",
        "operation",
        "event_name",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        created_dt = datetime.fromtimestamp(record.created, tz=timezone.utc)

        log_data: Dict[str, Any] = {
            "timestamp": created_dt.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr in self.CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value not in (None, "N/A"):
                log_data[attr] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra: Dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key in self.STANDARD_ATTRS or key in self.CONTEXT_ATTRS:
                continue
            if key.startswith("_"):
                continue
            if key in {"levelname", "name", "message", "asctime"}:
                continue
            extra[key] = val

        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


# ============================================================================
# Queue Handler & Listener
# ============================================================================


class BootlineQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _logging_metrics.records_enqueued += 1

        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _logging_metrics.records_dropped += 1
            sys.stderr.write("bootline logging queue full; dropping log record.\n")


class BootlineQueueListener(QueueListener):
    def handleError(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _logging_metrics.listener_errors += 1
        sys.stderr.write("bootline logging handler error while processing record.\n")


# ============================================================================
# Global Setup
# ============================================================================


def _build_console_handler(config: LoggingConfig) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(config.level)

    if config.use_json:
        handler.setFormatter(JSONFormatter())
    elif config.use_colors:
        handler.setFormatter(
            ColoredFormatter(fmt=config.CONSOLE_PATTERN, datefmt=config.DATE_FORMAT)
        )
    else:
        handler.setFormatter(
            logging.Formatter(fmt=config.CONSOLE_PATTERN, datefmt=config.DATE_FORMAT)
        )

    return handler


def _build_file_handler(config: LoggingConfig) -> logging.Handler:
    file_path = Path(str(config.file_path))
    file_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(file_path, mode="a", encoding="utf-8")
    handler.setLevel(config.level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Configure the root logger.

    Calling again replaces the handlers installed by the previous call.
    """
    global _queue_listener, _logging_metrics, _log_queue

    config = config or LoggingConfig()
    shutdown_logging()

    _logging_metrics = LoggingMetrics()

    root = logging.getLogger()
    root.setLevel(config.level)

    # Root-logger filters never see propagated records; attach to the handler.
    context_filter = ContextFilter()

    handlers: List[logging.Handler] = [_build_console_handler(config)]
    if config.file_path:
        handlers.append(_build_file_handler(config))

    _log_queue = queue.Queue(config.QUEUE_MAX_SIZE)

    _queue_listener = BootlineQueueListener(
        _log_queue,
        *handlers,
        respect_handler_level=True,
    )
    _queue_listener.start()

    queue_handler = BootlineQueueHandler(_log_queue)
    queue_handler.setLevel(config.level)
    queue_handler.addFilter(context_filter)

    root.addHandler(queue_handler)
    _installed_handlers.append(queue_handler)

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "log_level": logging.getLevelName(config.level),
            "console_format": config.console_format,
            "file_path": config.file_path,
            "queue_max_size": config.QUEUE_MAX_SIZE,
        },
    )


def shutdown_logging() -> None:
    """Stop the queue listener and remove every handler setup_logging added."""
    global _queue_listener, _log_queue

    root = logging.getLogger()

    if _queue_listener is not None:
        try:
            _queue_listener.stop()
        finally:
            for handler in _queue_listener.handlers:
                handler.flush()
                handler.close()
            _queue_listener = None

    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    _log_queue = None


def get_logging_health() -> LoggingHealth:
    queue_size = 0
    max_size = 0
    if _log_queue is not None:
        queue_size = _log_queue.qsize()
        max_size = _log_queue.maxsize

    return LoggingHealth(
        initialized=_queue_listener is not None,
        queue_size=queue_size,
        queue_max_size=max_size,
        records_enqueued=_logging_metrics.records_enqueued,
        records_dropped=_logging_metrics.records_dropped,
        listener_errors=_logging_metrics.listener_errors,
    )


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    def __init__(
        self,
        application: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        self.context: Dict[str, Any] = {
            "application": application or "N/A",
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id or self._generate_correlation_id(),
            **extra,
        }

        self._token: Optional[Token[Dict[str, Any]]] = None

    @staticmethod
    def _generate_correlation_id() -> str:
        return str(uuid.uuid4())[:8]

    def __enter__(self) -> "LogContext":
        self._token = _run_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _run_context.reset(self._token)


def set_log_context(
    application: Optional[str] = None,
    component: Optional[str] = None,
    operation: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **extra: Any,
) -> None:
    current = _run_context.get({}).copy()

    if application is not None:
        current["application"] = application
    if component is not None:
        current["component"] = component
    if operation is not None:
        current["operation"] = operation
    if correlation_id:
        current["correlation_id"] = correlation_id

    current.update(extra)
    _run_context.set(current)


def get_log_context() -> Dict[str, Any]:
    return dict(_run_context.get({}))


@contextmanager
def scoped_log_context(**fields: Any) -> Iterator[None]:
    """Layer ``fields`` over the current context until the block exits."""
    token = _run_context.set({**_run_context.get({}), **fields})
    try:
        yield
    finally:
        _run_context.reset(token)


def clear_log_context() -> None:
    _run_context.set({})
