"""
bootline: application bootstrap with a fixed lifecycle and an event bus.
"""

from bootline.application import (
    Application,
    ApplicationCrashedEvent,
    ApplicationShuttingDownEvent,
    CommandLineApplication,
    ErrorOccurredEvent,
    FatalErrorEvent,
    Initializer,
)
from bootline.config import EnvSource, IniSource, MemorySource, SettingManager, YamlSource
from bootline.event import Event, EventBus, GenericBroadcaster, LogBroadcaster, event_bus
from bootline.registry import registry

__version__ = "0.1.0"

__all__ = [
    "Application",
    "CommandLineApplication",
    "Initializer",
    "ApplicationCrashedEvent",
    "ApplicationShuttingDownEvent",
    "ErrorOccurredEvent",
    "FatalErrorEvent",
    "Event",
    "EventBus",
    "GenericBroadcaster",
    "LogBroadcaster",
    "event_bus",
    "registry",
    "SettingManager",
    "MemorySource",
    "IniSource",
    "YamlSource",
    "EnvSource",
]
