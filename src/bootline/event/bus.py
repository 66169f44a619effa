"""
bootline EventBus: lazily initialized facade over one Emitter.

Purpose
-------
Gives every component a single entry point for registering broadcasters and
listeners and for emitting events, without having to own an `Emitter`.

Responsibilities
----------------
- Create the emitter on first use (`init_if_needed`)
- Delegate registration and emission to the emitter
- Drop the emitter on `reset()` so independent runs start clean

Design Decisions
----------------
- **Instance-based**: components accept a bus argument; the process-wide
  `bootline.event.event_bus` is only the default.
- **Never resets itself**: listener accumulation across runs is the caller's
  concern; test suites call `reset()` between tests.
- **No locking**: one logical thread of control. A multi-threaded host must
  serialize access itself.
"""

from __future__ import annotations

from typing import Any, Optional

from bootline.event.broadcaster import Broadcaster
from bootline.event.emitter import Emitter
from bootline.event.metrics import EventMetrics
from bootline.event.types import ListenerTable, ListenerValue
from bootline.logging.logger import get_logger

logger = get_logger(__name__)


class EventBus:
    """
    Facade holding an optional `Emitter`.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.register_broadcaster(GenericBroadcaster())
    >>> bus.register_listener("application.crashed", "myapp.listeners.PageOnCall")
    >>> bus.emit(ApplicationCrashedEvent(error=report.to_dict()))
    """

    def __init__(self) -> None:
        self._emitter: Optional[Emitter] = None

    @property
    def emitter(self) -> Optional[Emitter]:
        return self._emitter

    @property
    def is_initialized(self) -> bool:
        return self._emitter is not None

    def init_if_needed(self) -> Emitter:
        """Create the emitter if absent and return it. Idempotent."""
        if self._emitter is None:
            self._emitter = Emitter()
            logger.debug("Event emitter created")
        return self._emitter

    def reset(self) -> None:
        """Discard the current emitter; the next call builds a fresh one."""
        if self._emitter is not None:
            logger.debug(
                "Event emitter reset",
                extra={"broadcaster_count": len(self._emitter.broadcasters)},
            )
        self._emitter = None

    # ------------------------------------------------------------------ #
    # Delegation
    # ------------------------------------------------------------------ #

    def register_broadcaster(self, broadcaster: Broadcaster) -> None:
        self.init_if_needed().register_broadcaster(broadcaster)

    def register_listener(self, event_name: str, listener: ListenerValue) -> None:
        self.init_if_needed().register_listener(event_name, listener)

    def register_listeners(self, table: ListenerTable) -> None:
        self.init_if_needed().register_listeners(table)

    def emit(self, event: Any) -> int:
        """Emit ``event`` and return the number of successful deliveries."""
        return self.init_if_needed().emit(event)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def metrics(self) -> EventMetrics:
        """Combined metrics of every broadcaster on the current emitter."""
        if self._emitter is None:
            return EventMetrics()
        return EventMetrics.merge(b.metrics() for b in self._emitter.broadcasters)
