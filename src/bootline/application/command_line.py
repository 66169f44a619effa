"""
Command-line applications.

`CommandLineApplication` refuses to start outside a command-line context and
processes switches before the regular `on_start` work. Each switch maps to a
callback captured at registration time::

    class Importer(CommandLineApplication):
        def __init__(self, version):
            super().__init__(version)
            self.dry_run = False
            self.add_handler("--dry-run", "Report only", self._set_dry_run)
            self.add_handler("--file", "File to import", self._set_file, takes_value=True)

A callback returning False halts the run.
"""

from __future__ import annotations

import sys
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from bootline.application.base import Application
from bootline.logging.logger import get_logger

logger = get_logger(__name__)

SwitchCallback = Callable[..., Optional[bool]]

SWITCH_COLUMN_WIDTH = 15
VALUE_COLUMN_WIDTH = 5


@dataclass(frozen=True, slots=True)
class SwitchHandler:
    switch: str
    description: str
    callback: SwitchCallback
    takes_value: bool = False


class CommandLineApplication(Application):
    """Application driven by command-line switches."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._handlers: Dict[str, SwitchHandler] = {}
        super().__init__(*args, **kwargs)

    @abstractmethod
    def get_description(self) -> str:
        """One-line description shown by ``--help``."""

    def get_handlers(self) -> Dict[str, SwitchHandler]:
        return dict(self._handlers)

    def add_handler(
        self,
        switch: str,
        description: str,
        callback: SwitchCallback,
        takes_value: bool = False,
    ) -> None:
        """
        Register ``callback`` for ``switch``.

        With ``takes_value`` the token following the switch is passed to the
        callback. Registering a switch again replaces the earlier handler.
        """
        self._handlers[switch] = SwitchHandler(switch, description, callback, takes_value)

    def process_parameters(self) -> bool:
        """Run the handler of every known switch in order; False halts."""
        tokens: List[str] = [str(token) for token in self._parameter_tokens()]

        index = 0
        while index < len(tokens):
            handler = self._handlers.get(tokens[index])
            index += 1
            if handler is None:
                continue

            if handler.takes_value:
                if index >= len(tokens):
                    logger.critical(f"Missing value for switch {handler.switch}")
                    return False
                result = handler.callback(tokens[index])
                index += 1
            else:
                result = handler.callback()

            if result is False:
                return False

        return True

    def _parameter_tokens(self) -> Sequence[Any]:
        parameters = self.get_parameters()
        if isinstance(parameters, (list, tuple)):
            return parameters
        return []

    def help(self) -> bool:
        """Print usage information. Returns False so the run stops."""
        lines = [
            Path(sys.argv[0]).stem if sys.argv and sys.argv[0] else type(self).__name__,
            f"v{self.get_version()}",
            self.get_description(),
            "",
            "Switches:",
            "Switch".ljust(SWITCH_COLUMN_WIDTH) + "Value",
            "------".ljust(SWITCH_COLUMN_WIDTH) + "-----",
        ]

        for switch in sorted(self._handlers):
            handler = self._handlers[switch]
            value = ("true" if handler.takes_value else " ").ljust(VALUE_COLUMN_WIDTH)
            lines.append(f"{switch.ljust(SWITCH_COLUMN_WIDTH)}{value}{handler.description}")

        print("\n".join(lines))
        return False

    def on_start(self) -> bool:
        if not self.is_command_line():
            logger.critical("Application must be run from the command line.")
            return False

        self.add_handler("--help", "Help", self.help)

        if not self.process_parameters():
            return False

        return super().on_start()
