"""
Event System for bootline.

Purpose
-------
Broadcaster-mediated publish/subscribe with deferred listener resolution and
a process-wide default `EventBus`.
"""

from .broadcaster import Broadcaster, GenericBroadcaster, LogBroadcaster
from .bus import EventBus
from .context import event_log_context
from .emitter import Emitter
from .loader import EventLoader
from .metrics import EventMetrics
from .registry import ListenerRegistry
from .resolver import ListenerResolver, default_resolver
from .types import Event, EventListener, ListenerRef, ListenerTable

# Process-wide default bus; call event_bus.reset() between independent runs.
event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "Emitter",
    "Broadcaster",
    "GenericBroadcaster",
    "LogBroadcaster",
    "ListenerRegistry",
    "ListenerResolver",
    "default_resolver",
    "Event",
    "EventListener",
    "ListenerRef",
    "ListenerTable",
    "EventMetrics",
    "EventLoader",
    "event_log_context",
]
