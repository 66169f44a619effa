"""
Event metrics for the bootline event system.

Purpose
-------
Counts dispatches, listener errors and deferred resolutions per event name
and exposes immutable snapshots for inspection.

Design Decisions
----------------
- **Mutable recorder, immutable snapshot**: broadcasters own a recorder;
  callers only ever see frozen `EventMetrics` values.
- **Mergeable snapshots**: the bus facade combines the snapshots of every
  broadcaster into one view.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(frozen=True)
class EventMetrics:
    """
    Immutable snapshot of event metrics.

    Attributes
    ----------
    events_dispatched:
        Mapping of event names to dispatch counts.
    listener_errors:
        Mapping of event names to listener error counts.
    listeners_resolved:
        Mapping of deferred identifiers to resolution counts.
    total_listeners:
        Number of registered listener slots.

    Examples
    --------
    >>> metrics = EventMetrics(
    ...     events_dispatched={"user.registered": 40},
    ...     listener_errors={"user.registered": 2},
    ... )
    >>> metrics.get_summary()["error_rate"]
    5.0
    """

    events_dispatched: dict[str, int] = field(default_factory=dict)
    listener_errors: dict[str, int] = field(default_factory=dict)
    listeners_resolved: dict[str, int] = field(default_factory=dict)
    total_listeners: int = 0

    def get_summary(self) -> dict[str, Any]:
        total_events = sum(self.events_dispatched.values())
        total_errors = sum(self.listener_errors.values())

        error_rate = (total_errors / max(1, total_events)) * 100.0

        return {
            "total_events_dispatched": total_events,
            "events_by_name": dict(self.events_dispatched),
            "total_errors": total_errors,
            "errors_by_event": dict(self.listener_errors),
            "listeners_resolved": dict(self.listeners_resolved),
            "total_listeners": self.total_listeners,
            "error_rate": round(error_rate, 2),
        }

    @classmethod
    def merge(cls, snapshots: Iterable[EventMetrics]) -> EventMetrics:
        """Sum several snapshots into one."""
        dispatched: defaultdict[str, int] = defaultdict(int)
        errors: defaultdict[str, int] = defaultdict(int)
        resolved: defaultdict[str, int] = defaultdict(int)
        total = 0

        for snapshot in snapshots:
            for name, count in snapshot.events_dispatched.items():
                dispatched[name] += count
            for name, count in snapshot.listener_errors.items():
                errors[name] += count
            for name, count in snapshot.listeners_resolved.items():
                resolved[name] += count
            total += snapshot.total_listeners

        return cls(
            events_dispatched=dict(dispatched),
            listener_errors=dict(errors),
            listeners_resolved=dict(resolved),
            total_listeners=total,
        )


class EventMetricsRecorder:
    """
    Mutable metrics recorder owned by one broadcaster.

    Examples
    --------
    >>> recorder = EventMetricsRecorder()
    >>> recorder.record_dispatch("ping")
    >>> recorder.record_error("ping")
    >>> recorder.snapshot().listener_errors["ping"]
    1
    """

    def __init__(self) -> None:
        self._events_dispatched: defaultdict[str, int] = defaultdict(int)
        self._listener_errors: defaultdict[str, int] = defaultdict(int)
        self._listeners_resolved: defaultdict[str, int] = defaultdict(int)
        self._total_listeners: int = 0

    def record_dispatch(self, event_name: str) -> None:
        self._events_dispatched[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self._listener_errors[event_name] += 1

    def record_resolution(self, identifier: str) -> None:
        self._listeners_resolved[identifier] += 1

    def increment_listener_count(self) -> None:
        self._total_listeners += 1

    @property
    def total_listeners(self) -> int:
        return self._total_listeners

    def snapshot(self) -> EventMetrics:
        """Return an immutable snapshot of current metrics."""
        return EventMetrics(
            events_dispatched=dict(self._events_dispatched),
            listener_errors=dict(self._listener_errors),
            listeners_resolved=dict(self._listeners_resolved),
            total_listeners=self._total_listeners,
        )
