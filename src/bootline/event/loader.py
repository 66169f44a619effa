"""
Declarative listener table loader.

Reads ``event-listeners.yaml`` from the application's listener directory and
registers every listed identifier with the event bus::

    events:
      - event: application.crashed
        listeners:
          - myapp.listeners.PageOnCall
          - myapp.listeners.AuditTrail

Identifiers are registered as deferred listeners; nothing is imported until
the event is first emitted.

A missing file is not an error. A file that cannot be read, is not valid
YAML, or has the wrong shape is logged and treated as empty.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml

from bootline.event.broadcaster import GenericBroadcaster
from bootline.event.bus import EventBus
from bootline.logging.logger import get_logger

if TYPE_CHECKING:
    from bootline.application.base import Application

logger = get_logger(__name__)

LISTENERS_FILE_NAME = "event-listeners.yaml"


class EventLoader:
    """Registers the default broadcaster and the listener table of one application."""

    def __init__(self, app: Application, bus: Optional[EventBus] = None) -> None:
        if bus is None:
            from bootline.event import event_bus

            bus = event_bus
        self._app = app
        self._bus = bus

    def init_events(self) -> int:
        """
        Register a `GenericBroadcaster` and every listener in the table.

        Returns
        -------
        int:
            Number of (event, listener) pairs registered.
        """
        self._bus.register_broadcaster(GenericBroadcaster())

        table_path = self.get_path() / LISTENERS_FILE_NAME
        if not table_path.is_file():
            logger.debug(
                "No event listener table found",
                extra={"path": str(table_path)},
            )
            return 0

        try:
            with table_path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except OSError as exc:
            logger.error(
                "Failed to read event listeners file",
                extra={"path": str(table_path), "error": str(exc)},
            )
            return 0
        except yaml.YAMLError as exc:
            logger.error(
                "Failed to parse event listeners",
                extra={"path": str(table_path), "error": str(exc)},
            )
            return 0

        table = self._parse_table(data, table_path)
        registered = 0
        for event_name, listeners in table.items():
            for listener in listeners:
                self._bus.register_listener(event_name, listener)
                registered += 1

        logger.debug(
            "Event listeners loaded",
            extra={
                "path": str(table_path),
                "event_count": len(table),
                "listener_count": registered,
            },
        )
        return registered

    def get_path(self) -> Path:
        """The listener directory: the configured path, else ``<base>/config``."""
        configured = self._app.get_event_listeners_path()
        if configured:
            return Path(configured)
        return Path(self._app.get_base_path()) / "config"

    @staticmethod
    def _parse_table(data: Any, path: Path) -> Dict[str, List[str]]:
        if data is None:
            return {}

        if not isinstance(data, dict):
            logger.error(
                "Malformed event listeners file: expected a mapping",
                extra={"path": str(path), "root_type": type(data).__name__},
            )
            return {}

        entries = data.get("events") or []
        if not isinstance(entries, list):
            logger.error(
                "Malformed event listeners file: 'events' must be a list",
                extra={"path": str(path), "root_type": type(entries).__name__},
            )
            return {}

        table: Dict[str, List[str]] = {}
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                logger.error(
                    "Malformed event listeners entry",
                    extra={"path": str(path), "position": position},
                )
                return {}

            # "class" is accepted for tables written before the "event" key.
            event_name = entry.get("event", entry.get("class"))
            listeners = entry.get("listeners") or []
            if not isinstance(event_name, str) or not isinstance(listeners, list):
                logger.error(
                    "Malformed event listeners entry",
                    extra={"path": str(path), "position": position},
                )
                return {}

            table.setdefault(event_name, []).extend(str(item) for item in listeners)

        return table
