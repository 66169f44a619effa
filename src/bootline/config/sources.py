"""
Settings sources for bootline.

Purpose
-------
A settings source answers ``get(section, name)`` and accepts
``set(section, name, value)``. Applications read through a
`SettingManager`, which chains a primary source with a fallback.

Sources
-------
- `MemorySource`: nested dict, mostly for tests and embedding
- `IniSource`: ``configparser`` file
- `YamlSource`: PyYAML document of ``section -> {name: value}``
- `EnvSource`: process environment plus an optional ``.env`` file
  (python-dotenv), keyed ``SECTION_NAME``

Design Decisions
----------------
- File-backed sources load eagerly and raise `ConfigLoadError`, so a broken
  file is noticed at startup rather than on first read.
- `set` only changes the in-memory view; `save()` writes file-backed sources
  back to disk.
- `EnvSource` follows python-dotenv's default: variables already present in
  the process environment win over the ``.env`` file.
"""

from __future__ import annotations

import configparser
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values

from bootline.config.errors import ConfigLoadError, ConfigWriteError
from bootline.logging.logger import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


class SettingSource(ABC):
    """A readable, writable store of ``section -> name -> value`` settings."""

    @abstractmethod
    def get(self, section: str, name: str) -> Optional[Any]:
        """Return the value, or None when absent."""

    @abstractmethod
    def set(self, section: str, name: str, value: Any) -> None:
        ...

    def get_section(self, section: str) -> Dict[str, Any]:
        """Return every value in ``section``; empty when the source cannot enumerate."""
        return {}


class MemorySource(SettingSource):
    """
    In-memory settings.

    Examples
    --------
    >>> source = MemorySource({"system": {"timezone": "Europe/Berlin"}})
    >>> source.get("system", "timezone")
    'Europe/Berlin'
    """

    def __init__(self, data: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._data: Dict[str, Dict[str, Any]] = {
            section: dict(values) for section, values in (data or {}).items()
        }

    def get(self, section: str, name: str) -> Optional[Any]:
        return self._data.get(section, {}).get(name)

    def set(self, section: str, name: str, value: Any) -> None:
        self._data.setdefault(section, {})[name] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        return dict(self._data.get(section, {}))


class IniSource(SettingSource):
    """Settings read from an INI file with ``configparser``."""

    def __init__(self, path: PathLike) -> None:
        self._path = Path(path)
        self._parser = configparser.ConfigParser(interpolation=None)

        if not self._path.is_file():
            raise ConfigLoadError(f"Settings file not found: {self._path}")

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                self._parser.read_file(handle)
        except (OSError, configparser.Error) as exc:
            raise ConfigLoadError(f"Cannot load settings from {self._path}: {exc}") from exc

    @property
    def path(self) -> Path:
        return self._path

    def get(self, section: str, name: str) -> Optional[Any]:
        return self._parser.get(section, name, fallback=None)

    def set(self, section: str, name: str, value: Any) -> None:
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, name, str(value))

    def get_section(self, section: str) -> Dict[str, Any]:
        if not self._parser.has_section(section):
            return {}
        return dict(self._parser.items(section))

    def save(self) -> None:
        try:
            with self._path.open("w", encoding="utf-8") as handle:
                self._parser.write(handle)
        except OSError as exc:
            raise ConfigWriteError(f"Cannot write settings to {self._path}: {exc}") from exc


class YamlSource(SettingSource):
    """
    Settings read from a YAML document::

        system:
          base_path: /srv/app
          timezone: UTC
        events:
          listeners_path: /srv/app/config
    """

    def __init__(self, path: PathLike) -> None:
        self._path = Path(path)

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except OSError as exc:
            raise ConfigLoadError(f"Cannot read settings from {self._path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"Cannot parse settings in {self._path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict) or not all(
            isinstance(values, dict) for values in data.values()
        ):
            raise ConfigLoadError(
                f"Settings in {self._path} must map section names to mappings"
            )

        self._data: Dict[str, Dict[str, Any]] = {
            str(section): dict(values) for section, values in data.items()
        }

    @property
    def path(self) -> Path:
        return self._path

    def get(self, section: str, name: str) -> Optional[Any]:
        return self._data.get(section, {}).get(name)

    def set(self, section: str, name: str, value: Any) -> None:
        self._data.setdefault(section, {})[name] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        return dict(self._data.get(section, {}))

    def save(self) -> None:
        try:
            with self._path.open("w", encoding="utf-8") as handle:
                yaml.safe_dump(self._data, handle, sort_keys=False)
        except OSError as exc:
            raise ConfigWriteError(f"Cannot write settings to {self._path}: {exc}") from exc


class EnvSource(SettingSource):
    """
    Settings read from environment variables.

    ``get("system", "base_path")`` looks up ``SYSTEM_BASE_PATH``. A missing
    ``.env`` file is not an error.
    """

    def __init__(self, env_file: Optional[PathLike] = None) -> None:
        self._env_file = Path(env_file) if env_file is not None else None
        self._file_values: Dict[str, Optional[str]] = {}

        if self._env_file is not None and self._env_file.is_file():
            self._file_values = dict(dotenv_values(self._env_file))
            logger.debug(
                "Loaded .env settings",
                extra={"path": str(self._env_file), "key_count": len(self._file_values)},
            )

    @staticmethod
    def key_for(section: str, name: str) -> str:
        return f"{section}_{name}".upper()

    def get(self, section: str, name: str) -> Optional[Any]:
        key = self.key_for(section, name)
        if key in os.environ:
            return os.environ[key]
        return self._file_values.get(key)

    def set(self, section: str, name: str, value: Any) -> None:
        os.environ[self.key_for(section, name)] = str(value)

    def get_section(self, section: str) -> Dict[str, Any]:
        prefix = f"{section}_".upper()
        values: Dict[str, Any] = {}
        for source in (self._file_values, os.environ):
            for key, value in source.items():
                if key.startswith(prefix) and value is not None:
                    values[key[len(prefix):].lower()] = value
        return values
