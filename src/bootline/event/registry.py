"""
ListenerRegistry: storage and lookup for broadcaster listeners.

Purpose
-------
Maps event names to the ordered list of listener references registered for
them. Each broadcaster owns exactly one registry.

Responsibilities
----------------
- Append listener references per event name (insertion order = invocation order)
- Return the live list for an event name so resolved listeners can be cached
  back into their slot
- Provide introspection (counts, all event keys)

Design Decisions
----------------
- **Append-only**: no de-duplication; the same listener registered twice is
  invoked twice.
- **No sorting**: registration order is the contract.
- **No locking**: single logical thread of control.
"""

from __future__ import annotations

from typing import Any

from bootline.event.types import ListenerRef


class ListenerRegistry:
    """
    Registry of listener references keyed by event name.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.add_listener("ping", "myapp.listeners.Pong")
    >>> registry.get_listener_count_for_event("ping")
    1
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[ListenerRef]] = {}

    def add_listener(self, event_name: str, listener: Any) -> ListenerRef:
        """
        Append a listener or deferred identifier for ``event_name``.

        Never raises. Strings are stored as deferred identifiers.
        """
        ref = ListenerRef.from_value(listener)
        self._listeners.setdefault(event_name, []).append(ref)
        return ref

    def listeners_for(self, event_name: str) -> list[ListenerRef]:
        """
        Return the slots registered for ``event_name``.

        The returned list is a snapshot of the slots; the slot objects are the
        registry's own, so binding a resolved listener on them persists.
        """
        return list(self._listeners.get(event_name, ()))

    def clear_all(self) -> int:
        """Remove all listeners and return the previous total count."""
        total = self.get_total_listener_count()
        self._listeners.clear()
        return total

    def get_listener_count_for_event(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, ()))

    def get_total_listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

    def get_all_event_keys(self) -> list[str]:
        return sorted(self._listeners)
