"""
Lifecycle events announced by `Application`.

Every event carries its registry key in the class-level ``name`` so listener
tables can refer to it by string, e.g. ``application.crashed``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict


@dataclass(frozen=True, slots=True)
class ApplicationCrashedEvent:
    """Emitted by `Application.on_crash` with the error report as a dict."""

    name: ClassVar[str] = "application.crashed"

    error: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ApplicationShuttingDownEvent:
    """Emitted by the base `Application.on_finish`."""

    name: ClassVar[str] = "application.shutting_down"


@dataclass(frozen=True, slots=True)
class ErrorOccurredEvent:
    """Emitted for every non-fatal runtime signal routed to `error_handler`."""

    name: ClassVar[str] = "application.error"

    error_no: int
    message: str
    file: str
    line: int


@dataclass(frozen=True, slots=True)
class FatalErrorEvent:
    """Emitted by the fatal handler after a fatal fault has been reported."""

    name: ClassVar[str] = "application.fatal_error"

    type: str
    message: str
    file: str
    line: int


LIFECYCLE_EVENTS = (
    ApplicationCrashedEvent,
    ApplicationShuttingDownEvent,
    ErrorOccurredEvent,
    FatalErrorEvent,
)
