"""
Error Handling Helpers for the bootline event system.

Purpose
-------
Provides centralized error handling for listener resolution and execution,
ensuring consistent error logging, metrics recording, and error isolation.

Responsibilities
----------------
- Log listener failures with full context
- Update metrics when errors occur
- Ensure error isolation (one failing listener doesn't affect its siblings)

Dependencies
------------
- bootline.event.types (ListenerRef)
- bootline.event.metrics (EventMetricsRecorder)
- bootline.exceptions (severity lookup)
"""

from __future__ import annotations

import logging
from logging import Logger
from typing import Optional

from bootline.event.metrics import EventMetricsRecorder
from bootline.event.types import ListenerRef
from bootline.exceptions import BootlineException, should_alert


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: ListenerRef,
    exc: Exception,
    metrics: Optional[EventMetricsRecorder],
) -> None:
    """
    Log a listener failure and update metrics.

    Parameters
    ----------
    logger:
        Logger instance to use for error logging.
    event_name:
        Name of the event that was being dispatched.
    listener:
        The registry slot whose listener failed to resolve or raised.
    exc:
        The exception that was raised.
    metrics:
        Optional EventMetricsRecorder to update. If None, metrics are skipped.

    Notes
    -----
    This function never raises.

    Examples
    --------
    >>> try:
    ...     ref.invoke(event)
    ... except Exception as exc:
    ...     handle_listener_error(
    ...         logger=logger,
    ...         event_name=event.name,
    ...         listener=ref,
    ...         exc=exc,
    ...         metrics=recorder,
    ...     )
    """
    if metrics is not None:
        metrics.record_error(event_name)

    extra = {
        "event_name": event_name,
        "listener_id": listener.label,
        "deferred": listener.is_deferred,
        "error": str(exc),
        "error_type": type(exc).__name__,
    }
    if isinstance(exc, BootlineException):
        extra["error_code"] = exc.error_code

    logger.log(
        logging.CRITICAL if should_alert(exc) else logging.ERROR,
        "Event listener error",
        extra=extra,
        exc_info=True,
    )
