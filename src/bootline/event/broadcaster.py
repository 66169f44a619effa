"""
Broadcasters: delivery channels that own a listener registry.

Purpose
-------
A broadcaster receives every listener registration the emitter forwards and
delivers each emitted event to the listeners registered under its name.

Responsibilities
----------------
- Own exactly one `ListenerRegistry`
- Resolve deferred listener identifiers on first delivery and cache the result
- Invoke listeners synchronously, in registration order
- Isolate failures: one broken listener never blocks its siblings

Design Decisions
----------------
- **Resolution cache per broadcaster**: an identifier is resolved at most once
  per broadcaster, however many times it is registered or dispatched to.
- **Failed resolutions are not cached**: the next dispatch tries again.
- **Only `Exception` is isolated**: `KeyboardInterrupt`, `SystemExit` and
  other `BaseException`s propagate.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Optional

from bootline.event.context import describe_event, event_log_context
from bootline.event.errors import handle_listener_error
from bootline.event.metrics import EventMetrics, EventMetricsRecorder
from bootline.event.registry import ListenerRegistry
from bootline.event.resolver import ListenerResolver, default_resolver
from bootline.event.types import ListenerRef
from bootline.logging.logger import get_logger

logger = get_logger(__name__)


class Broadcaster(ABC):
    """
    Base broadcaster with synchronous, failure-isolated delivery.

    Subclasses customise delivery through `before_dispatch` and
    `after_dispatch`, or replace `dispatch` entirely.
    """

    def __init__(self, resolver: Optional[ListenerResolver] = None) -> None:
        self._registry = ListenerRegistry()
        self._resolver = resolver or default_resolver
        self._resolved: dict[str, Any] = {}
        self._metrics = EventMetricsRecorder()

    @property
    def registry(self) -> ListenerRegistry:
        return self._registry

    def add_listener(self, event_name: str, listener: Any) -> None:
        """Register a listener instance or deferred identifier. Never raises."""
        ref = self._registry.add_listener(event_name, listener)
        self._metrics.increment_listener_count()

        logger.debug(
            "Listener registered",
            extra={
                "event_name": event_name,
                "listener_id": ref.label,
                "deferred": ref.is_deferred,
                "broadcaster": type(self).__name__,
            },
        )

    def dispatch(self, event: Any) -> int:
        """
        Deliver ``event`` to every listener registered for ``event.name``.

        Returns
        -------
        int:
            Number of listeners that handled the event without raising.
        """
        event_name = event.name
        listeners = self._registry.listeners_for(event_name)
        self._metrics.record_dispatch(event_name)

        if not listeners:
            return 0

        self.before_dispatch(event, len(listeners))

        notified = 0
        with event_log_context(event_name):
            for ref in listeners:
                try:
                    self._resolve(ref)
                    ref.invoke(event)
                except Exception as exc:
                    handle_listener_error(
                        logger=logger,
                        event_name=event_name,
                        listener=ref,
                        exc=exc,
                        metrics=self._metrics,
                    )
                    continue
                notified += 1

        self.after_dispatch(event, notified, len(listeners))
        return notified

    def before_dispatch(self, event: Any, listener_count: int) -> None:
        """Hook called once per dispatch that has at least one listener."""

    def after_dispatch(self, event: Any, notified: int, listener_count: int) -> None:
        """Hook called after every listener for the event has been attempted."""

    def metrics(self) -> EventMetrics:
        return self._metrics.snapshot()

    def _resolve(self, ref: ListenerRef) -> None:
        if not ref.is_deferred:
            return

        identifier = str(ref.identifier)
        listener = self._resolved.get(identifier)
        if listener is None:
            listener = self._resolver.resolve(identifier)
            self._resolved[identifier] = listener
            self._metrics.record_resolution(identifier)
        ref.bind(listener)


class GenericBroadcaster(Broadcaster):
    """Default in-process broadcaster."""


class LogBroadcaster(Broadcaster):
    """Generic delivery plus one INFO record per dispatched event."""

    def after_dispatch(self, event: Any, notified: int, listener_count: int) -> None:
        logger.info(
            "Event dispatched",
            extra={
                **describe_event(event),
                "listeners_notified": notified,
                "listener_count": listener_count,
            },
        )
