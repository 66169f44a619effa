"""
Deferred listener resolution.

A deferred listener is registered by identifier and only turned into a live
object the first time an event it listens for is dispatched. Identifiers are
looked up in two places, in order:

1. Factories registered with `ListenerResolver.register_factory`.
2. An importable dotted path, ``package.module.Name`` or ``package.module:Name``.
   Classes are instantiated with no arguments; other callables are used as-is.

Whatever comes back must implement ``handle(event)`` or be callable.
"""

from __future__ import annotations

import importlib
import inspect
from typing import Any, Callable, Dict

from bootline.exceptions import ListenerResolutionError
from bootline.logging.logger import get_logger

logger = get_logger(__name__)

ListenerFactory = Callable[[], Any]


class ListenerResolver:
    """Turns deferred listener identifiers into listener instances."""

    def __init__(self) -> None:
        self._factories: Dict[str, ListenerFactory] = {}

    def register_factory(self, identifier: str, factory: ListenerFactory) -> None:
        self._factories[identifier] = factory

    def reset(self) -> None:
        self._factories.clear()

    def resolve(self, identifier: str) -> Any:
        """
        Build the listener for ``identifier``.

        Raises
        ------
        ListenerResolutionError
            If nothing matches the identifier, construction fails, or the
            result does not implement the listener capability.
        """
        factory = self._factories.get(identifier)
        if factory is None:
            factory = self._import_target(identifier)

        try:
            if inspect.isclass(factory) or identifier in self._factories:
                listener = factory()
            else:
                listener = factory
        except Exception as exc:
            raise ListenerResolutionError(
                identifier, f"construction failed: {exc}", exc
            ) from exc

        handle = getattr(listener, "handle", None)
        if not callable(handle) and not callable(listener):
            raise ListenerResolutionError(
                identifier,
                f"{type(listener).__name__} does not implement handle(event)",
            )

        logger.debug(
            "Resolved deferred listener",
            extra={"identifier": identifier, "listener_type": type(listener).__name__},
        )
        return listener

    @staticmethod
    def _import_target(identifier: str) -> Any:
        if ":" in identifier:
            module_name, _, attr_path = identifier.partition(":")
        else:
            module_name, _, attr_path = identifier.rpartition(".")

        if not module_name or not attr_path:
            raise ListenerResolutionError(identifier, "not a dotted import path")

        try:
            target: Any = importlib.import_module(module_name)
        except ImportError as exc:
            raise ListenerResolutionError(
                identifier, f"module '{module_name}' cannot be imported", exc
            ) from exc

        for attr in attr_path.split("."):
            try:
                target = getattr(target, attr)
            except AttributeError as exc:
                raise ListenerResolutionError(
                    identifier, f"'{attr}' not found in '{module_name}'", exc
                ) from exc
        return target


default_resolver = ListenerResolver()
