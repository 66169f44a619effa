"""
Infrastructure exceptions for bootline.

Purpose
-------
Define the structured exception hierarchy for framework-level concerns:
listener resolution failures, initializer failures and
unrecoverable application faults.

Design Notes
------------
- All framework exceptions inherit from `BootlineException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging decisions
  - `error_code`: short, stable identifier for programmatic use
- `to_dict()` output is meant to be passed as logging `extra`.
- Helper functions (`get_error_severity`, `should_alert`) centralize common
  exception handling patterns.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class BootlineException(Exception):
    """
    Base exception for all bootline infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        error_code: Optional code for programmatic handling

    Example:
        >>> raise BootlineException(
        ...     "Listener table unreadable",
        ...     {"path": "config/event-listeners.yaml"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class ListenerResolutionError(BootlineException):
    """
    Raised when a deferred listener identifier cannot become a listener.

    Raised at dispatch time only. Registration of an identifier never fails.

    Args:
        identifier: The deferred identifier that failed to resolve
        reason: Why resolution failed
        original_error: The underlying exception, if any
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(
        self,
        identifier: str,
        reason: str,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.identifier = identifier
        self.reason = reason
        self.original_error = original_error
        super().__init__(
            f"Cannot resolve listener '{identifier}': {reason}",
            details={
                "identifier": identifier,
                "reason": reason,
                "error_type": (
                    type(original_error).__name__ if original_error else None
                ),
            },
            error_code="LISTENER_RESOLUTION_ERROR",
        )


class InitializerError(BootlineException):
    """
    Raised when a startup initializer fails.

    Args:
        initializer: Qualified name of the initializer class
        original_error: The underlying exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(self, initializer: str, original_error: Exception) -> None:
        self.initializer = initializer
        self.original_error = original_error
        super().__init__(
            f"Initializer {initializer} failed: {original_error}",
            details={
                "initializer": initializer,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="INITIALIZER_ERROR",
        )


class FatalApplicationError(BootlineException):
    """
    Raised by application code to signal an unrecoverable condition.

    Unlike ordinary exceptions, this one is not absorbed by
    `Application.run()`; it travels to the process-level handler.
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    if isinstance(exc, BootlineException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: BaseException) -> bool:
    """
    Determine if an exception should be logged at CRITICAL level.

    Args:
        exc: Exception to check

    Returns:
        True if severity is CRITICAL, False otherwise.
    """
    return get_error_severity(exc) is ErrorSeverity.CRITICAL
