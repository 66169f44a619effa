"""
SettingManager: a primary settings source with an optional fallback.

Reads try the primary source first and fall back when it has no value.
Writes always go to the primary source.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from bootline.config.sources import SettingSource


class SettingManager:
    """
    Chained settings lookup.

    Examples
    --------
    >>> manager = SettingManager(YamlSource("config/app.yaml"), EnvSource(".env"))
    >>> manager.get("system", "timezone")
    'UTC'
    """

    def __init__(
        self,
        source: SettingSource,
        fallback: Optional[SettingSource] = None,
    ) -> None:
        self._source = source
        self._fallback = fallback

    @property
    def source(self) -> SettingSource:
        return self._source

    @property
    def fallback(self) -> Optional[SettingSource]:
        return self._fallback

    def set_fallback(self, fallback: Optional[SettingSource]) -> None:
        self._fallback = fallback

    def get(self, section: str, name: str, default: Any = None) -> Any:
        value = self._source.get(section, name)
        if value is None and self._fallback is not None:
            value = self._fallback.get(section, name)
        return default if value is None else value

    def set(self, section: str, name: str, value: Any) -> None:
        self._source.set(section, name, value)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Merge ``section`` from both sources; the primary wins."""
        values: Dict[str, Any] = {}
        if self._fallback is not None:
            values.update(self._fallback.get_section(section))
        values.update(self._source.get_section(section))
        return values
