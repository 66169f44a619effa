"""
Error handling strategy for bootline applications.

Purpose
-------
Classifies failures into three report categories and installs the
process-level hooks that route them to an `Application`:

- **Recoverable**: an `Exception` raised from `on_run`; handled inside `run()`.
- **Non-fatal**: a warning, routed to `Application.error_handler`; execution
  continues.
- **Fatal**: a fault of one of `FATAL_FAULT_TYPES`, reported from the
  ``atexit`` hook; or any other exception reaching ``sys.excepthook``,
  reported and followed by exit status 1.

Design Decisions
----------------
- `ProcessErrorHandler` is an object: install once at process entry,
  `uninstall()` restores the previous hooks.
- The fatal handler inspects the *recorded* last fault. Faults are recorded
  from ``threading.excepthook``, by `record_fault`, and by ``sys.excepthook``
  for fatal kinds only; every other exception reaching ``sys.excepthook`` is
  reported there and never recorded, so nothing is reported twice.
- ``KeyboardInterrupt`` reaching ``sys.excepthook`` goes to the previous hook.
"""

from __future__ import annotations

import atexit
import sys
import threading
import traceback
import warnings
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type

from bootline.exceptions import BootlineException, FatalApplicationError
from bootline.logging.logger import get_logger

if TYPE_CHECKING:
    from bootline.application.base import Application

logger = get_logger(__name__)


# ============================================================================
# Classification
# ============================================================================


class ErrorCategory(str, Enum):
    RECOVERABLE = "recoverable"
    NON_FATAL = "non_fatal"
    FATAL = "fatal"


class Severity(IntEnum):
    """Numeric severity codes for non-fatal runtime signals."""

    ERROR = 1
    WARNING = 2
    NOTICE = 3
    USER_ERROR = 4
    USER_WARNING = 5
    USER_NOTICE = 6


_SEVERITY_LABELS: Dict[int, str] = {
    Severity.NOTICE: "Notice",
    Severity.USER_NOTICE: "Notice",
    Severity.WARNING: "Warning",
    Severity.USER_WARNING: "Warning",
    Severity.ERROR: "Fatal Error",
    Severity.USER_ERROR: "Fatal Error",
}


def severity_label(code: int) -> str:
    """Map a severity code to its label; unknown codes are ``"Unknown Error"``."""
    return _SEVERITY_LABELS.get(code, "Unknown Error")


def severity_for_warning(category: Type[Warning]) -> Severity:
    """
    Map a warning category to a severity code.

    Deprecation and import warnings are notices, `UserWarning` is a user
    warning, `FutureWarning` a user notice, everything else a warning.
    """
    if issubclass(category, (DeprecationWarning, PendingDeprecationWarning, ImportWarning)):
        return Severity.NOTICE
    if issubclass(category, FutureWarning):
        return Severity.USER_NOTICE
    if issubclass(category, UserWarning):
        return Severity.USER_WARNING
    return Severity.WARNING


FATAL_FAULT_TYPES = (
    MemoryError,
    RecursionError,
    SystemError,
    SyntaxError,
    FatalApplicationError,
)

_FATAL_TYPE_NAMES = (
    (SyntaxError, "Parse Error"),
    (SystemError, "Core Error"),
    (FatalApplicationError, "User Error"),
    (MemoryError, "Fatal Error"),
    (RecursionError, "Fatal Error"),
)


def is_fatal_fault(exc: Optional[BaseException]) -> bool:
    return isinstance(exc, FATAL_FAULT_TYPES)


def fatal_type_name(exc: BaseException) -> str:
    for fault_type, label in _FATAL_TYPE_NAMES:
        if isinstance(exc, fault_type):
            return label
    return "Unknown Fatal Error"


# ============================================================================
# Reports
# ============================================================================


@dataclass(frozen=True, slots=True)
class ErrorReport:
    """
    Structured description of a failure handed to `Application.on_crash`.

    ``message`` is always present; the location fields are filled for fatal
    reports and ``trace`` only by the global exception handler.
    """

    category: ErrorCategory
    message: str
    type: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    trace: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        category: ErrorCategory = ErrorCategory.FATAL,
        *,
        type_name: Optional[str] = None,
        with_trace: bool = False,
    ) -> ErrorReport:
        file, line = exception_location(exc)
        trace = None
        if with_trace:
            trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip()
        return cls(
            category=category,
            message=exception_message(exc),
            type=type_name or type(exc).__name__,
            file=file,
            line=line,
            trace=trace,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"category": self.category.value, "message": self.message}
        for key in ("type", "file", "line", "trace"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def exception_message(exc: BaseException) -> str:
    """The bare message of ``exc``, without the error-code prefix of framework exceptions."""
    if isinstance(exc, BootlineException):
        return exc.message
    return str(exc)


def exception_location(exc: BaseException) -> tuple[str, int]:
    """Return ``(file, line)`` where ``exc`` was raised, or ``("unknown", 0)``."""
    if isinstance(exc, SyntaxError) and exc.filename:
        return exc.filename, exc.lineno or 0

    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    if frames:
        last = frames[-1]
        return last.filename, last.lineno or 0
    return "unknown", 0


# ============================================================================
# Process hooks
# ============================================================================


class ProcessErrorHandler:
    """
    Installs and removes the process-level hooks of one application.

    - ``handle_errors``: ``warnings.showwarning`` -> `Application.error_handler`
    - ``handle_fatal``: ``sys.excepthook`` -> `Application.global_exception_handler`
      (fatal kinds are recorded instead), ``threading.excepthook`` records
      faults, ``atexit`` -> `Application.fatal_handler`
    """

    def __init__(
        self,
        app: Application,
        *,
        handle_errors: bool = False,
        handle_fatal: bool = False,
    ) -> None:
        self._app = app
        self._handle_errors = handle_errors
        self._handle_fatal = handle_fatal
        self._installed = False
        self._last_fault: Optional[BaseException] = None

        self._previous_showwarning: Optional[Callable[..., Any]] = None
        self._previous_excepthook: Optional[Callable[..., Any]] = None
        self._previous_thread_excepthook: Optional[Callable[..., Any]] = None

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def last_fault(self) -> Optional[BaseException]:
        return self._last_fault

    def record_fault(self, exc: Optional[BaseException]) -> None:
        """Remember ``exc`` for the fatal handler to inspect at exit."""
        self._last_fault = exc

    def install(self) -> None:
        if self._installed:
            return

        if self._handle_errors:
            self._previous_showwarning = warnings.showwarning
            warnings.showwarning = self._show_warning

        if self._handle_fatal:
            self._previous_excepthook = sys.excepthook
            self._previous_thread_excepthook = threading.excepthook
            sys.excepthook = self._excepthook
            threading.excepthook = self._thread_excepthook
            atexit.register(self._at_exit)

        self._installed = True
        logger.debug(
            "Process error hooks installed",
            extra={
                "handle_errors": self._handle_errors,
                "handle_fatal": self._handle_fatal,
            },
        )

    def uninstall(self) -> None:
        """Restore every hook replaced by `install`."""
        if not self._installed:
            return

        if self._previous_showwarning is not None:
            warnings.showwarning = self._previous_showwarning
            self._previous_showwarning = None

        if self._handle_fatal:
            if self._previous_excepthook is not None:
                sys.excepthook = self._previous_excepthook
            if self._previous_thread_excepthook is not None:
                threading.excepthook = self._previous_thread_excepthook
            self._previous_excepthook = None
            self._previous_thread_excepthook = None
            atexit.unregister(self._at_exit)

        self._installed = False
        logger.debug("Process error hooks removed")

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #

    def _show_warning(
        self,
        message: Any,
        category: Type[Warning],
        filename: str,
        lineno: int,
        file: Any = None,
        line: Optional[str] = None,
    ) -> None:
        self._app.error_handler(
            int(severity_for_warning(category)),
            str(message),
            filename,
            lineno,
        )

    def _excepthook(self, exc_type: Type[BaseException], exc: BaseException, tb: Any) -> None:
        if issubclass(exc_type, KeyboardInterrupt) and self._previous_excepthook is not None:
            self._previous_excepthook(exc_type, exc, tb)
            return
        if is_fatal_fault(exc):
            # Reported once by the atexit hook; the interpreter exits with status 1.
            self.record_fault(exc)
            return
        self._app.global_exception_handler(exc)

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_value is not None:
            self.record_fault(args.exc_value)
        if self._previous_thread_excepthook is not None:
            self._previous_thread_excepthook(args)

    def _at_exit(self) -> None:
        self._app.fatal_handler()
