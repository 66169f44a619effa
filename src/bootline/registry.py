"""
Process-wide object registry.

A name -> object map shared by the application and its collaborators. The
application stores its `SettingManager` under ``"Settings"``; initializer
discovery reads ``"Initializers.Package"``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class Registry:
    """
    Name -> object store.

    Examples
    --------
    >>> registry.set("Settings", manager)
    >>> registry.get("Settings") is manager
    True
    """

    def __init__(self) -> None:
        self._objects: Dict[str, Any] = {}

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        return self._objects.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._objects[name] = value

    def has(self, name: str) -> bool:
        return name in self._objects

    def reset(self) -> None:
        """Forget every stored object."""
        self._objects.clear()


registry = Registry()
