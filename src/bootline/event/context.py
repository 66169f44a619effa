"""
Event Log Context Helpers.

Enriches the current log context with the name of the event being emitted so
every record written by listeners during dispatch carries it.
"""

from __future__ import annotations

from typing import Any, ContextManager

from bootline.logging.logger import scoped_log_context


def event_log_context(event_name: str) -> ContextManager[None]:
    """
    Apply ``event_name`` to the log context for the duration of a dispatch.

    The previous context is restored afterwards, including on error.

    Examples
    --------
    >>> with event_log_context("user.registered"):
    ...     logger.info("delivering")  # record carries event_name
    """
    return scoped_log_context(event_name=event_name)


def describe_event(event: Any) -> dict[str, Any]:
    """Return log-safe metadata about an event: its name and type, never the payload."""
    return {
        "event_name": getattr(event, "name", None),
        "event_type": type(event).__name__,
    }
