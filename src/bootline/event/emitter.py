"""
Emitter: fan-out coordinator for broadcasters.

Purpose
-------
Holds an ordered list of broadcasters and forwards every registration and
every emitted event to each of them, in registration order.

Design Decisions
----------------
- **No de-duplication**: registering one broadcaster twice delivers every
  event through it twice.
- **Synchronous fan-out**: `emit` returns only after every broadcaster has
  attempted every matching listener.
- **Late broadcasters miss earlier registrations**: listeners are forwarded to
  the broadcasters present at registration time only.
"""

from __future__ import annotations

from typing import Any, Sequence

from bootline.event.broadcaster import Broadcaster
from bootline.event.types import ListenerTable, ListenerValue
from bootline.logging.logger import get_logger

logger = get_logger(__name__)


class Emitter:
    """
    Ordered set of broadcasters receiving the same registrations and events.

    Examples
    --------
    >>> emitter = Emitter()
    >>> emitter.register_broadcaster(GenericBroadcaster())
    >>> emitter.register_listener("ping", on_ping)
    >>> emitter.emit(Event("ping", payload="x"))
    1
    """

    def __init__(self) -> None:
        self._broadcasters: list[Broadcaster] = []

    @property
    def broadcasters(self) -> Sequence[Broadcaster]:
        return tuple(self._broadcasters)

    def register_broadcaster(self, broadcaster: Broadcaster) -> None:
        self._broadcasters.append(broadcaster)
        logger.debug(
            "Broadcaster registered",
            extra={
                "broadcaster": type(broadcaster).__name__,
                "broadcaster_count": len(self._broadcasters),
            },
        )

    def register_listener(self, event_name: str, listener: ListenerValue) -> None:
        for broadcaster in self._broadcasters:
            broadcaster.add_listener(event_name, listener)

    def register_listeners(self, table: ListenerTable) -> None:
        """Forward every ``(event_name, listener)`` pair of ``table``."""
        for event_name, listeners in table.items():
            for listener in listeners:
                self.register_listener(event_name, listener)

    def emit(self, event: Any) -> int:
        """
        Dispatch ``event`` through every broadcaster.

        Returns
        -------
        int:
            Total successful deliveries across all broadcasters.
        """
        return sum(broadcaster.dispatch(event) for broadcaster in self._broadcasters)
