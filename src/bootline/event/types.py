"""
Core Event Types for the bootline event system.

Purpose
-------
Provides the value types shared by every part of the event system: the event
value itself, the listener capability, and the listener reference stored in a
registry.

Responsibilities
----------------
- Define the `Event` value (name + payload)
- Define the `EventListener` protocol (single `handle(event)` operation)
- Define `ListenerRef`, the tagged variant `Instance | Deferred`
- Define the `ListenerTable` alias used for bulk registration

Design Decisions
----------------
- **Events are frozen dataclasses**: listeners receive read-only values; the
  name is used verbatim as the registry key.
- **Tagged listener references**: a deferred identifier is a plain string
  resolved on first delivery; once resolved the slot holds an instance.
- **Callables are listeners too**: a live object without `handle` but with
  `__call__` is invoked directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True, slots=True)
class Event:
    """
    A named, immutable notification value.

    Attributes
    ----------
    name:
        Registry lookup key, e.g. ``"user.registered"``.
    payload:
        Arbitrary event-specific data.

    Examples
    --------
    >>> event = Event("ping", payload="x")
    >>> event.name
    'ping'
    """

    name: str
    payload: Any = None


@runtime_checkable
class EventListener(Protocol):
    """Capability implemented by every listener: handle one event."""

    def handle(self, event: Any) -> Any:
        ...


@dataclass(slots=True)
class ListenerRef:
    """
    Registry slot holding either a live listener or a deferred identifier.

    Exactly one of ``instance`` / ``identifier`` is meaningful at a time.
    After resolution ``instance`` is set and ``identifier`` is kept for logs.

    Examples
    --------
    >>> ref = ListenerRef.deferred("myapp.listeners.Audit")
    >>> ref.is_deferred
    True
    """

    instance: Optional[Any] = None
    identifier: Optional[str] = None

    @classmethod
    def live(cls, listener: Any) -> ListenerRef:
        return cls(instance=listener)

    @classmethod
    def deferred(cls, identifier: str) -> ListenerRef:
        return cls(identifier=identifier)

    @classmethod
    def from_value(cls, value: Union[str, Any]) -> ListenerRef:
        """Wrap a registration argument: strings are deferred, anything else live."""
        if isinstance(value, ListenerRef):
            return cls(instance=value.instance, identifier=value.identifier)
        if isinstance(value, str):
            return cls.deferred(value)
        return cls.live(value)

    @property
    def is_deferred(self) -> bool:
        """True only for an identifier that has not been resolved yet."""
        return self.identifier is not None and self.instance is None

    @property
    def label(self) -> str:
        """Human-readable name for logs and metrics."""
        if self.identifier:
            return self.identifier
        target = self.instance
        qualname = getattr(target, "__qualname__", None) or type(target).__qualname__
        module = getattr(target, "__module__", None) or type(target).__module__
        return f"{module}.{qualname}"

    def bind(self, listener: Any) -> None:
        """Cache a resolved listener in this slot."""
        self.instance = listener

    def invoke(self, event: Any) -> Any:
        listener = self.instance
        handle = getattr(listener, "handle", None)
        if callable(handle):
            return handle(event)
        return listener(event)


ListenerValue = Union[str, Any]
ListenerTable = Mapping[str, Iterable[ListenerValue]]
