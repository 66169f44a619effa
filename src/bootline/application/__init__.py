"""
Application lifecycle for bootline.

Exports the `Application` base, the command-line variant, lifecycle events,
the error handling strategy and initializer discovery.
"""

from .base import Application, LifecycleState
from .command_line import CommandLineApplication
from .errors import (
    FATAL_FAULT_TYPES,
    ErrorCategory,
    ErrorReport,
    ProcessErrorHandler,
    Severity,
    severity_for_warning,
    severity_label,
)
from .events import (
    ApplicationCrashedEvent,
    ApplicationShuttingDownEvent,
    ErrorOccurredEvent,
    FatalErrorEvent,
    LIFECYCLE_EVENTS,
)
from .initializers import Initializer, InitializerRunner

__all__ = [
    "Application",
    "CommandLineApplication",
    "LifecycleState",
    "ErrorCategory",
    "ErrorReport",
    "ProcessErrorHandler",
    "Severity",
    "severity_label",
    "severity_for_warning",
    "FATAL_FAULT_TYPES",
    "ApplicationCrashedEvent",
    "ApplicationShuttingDownEvent",
    "ErrorOccurredEvent",
    "FatalErrorEvent",
    "LIFECYCLE_EVENTS",
    "Initializer",
    "InitializerRunner",
]
