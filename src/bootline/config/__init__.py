"""
Configuration subsystem for bootline.

Provides the settings sources (memory, INI, YAML, environment) and the
`SettingManager` that chains a primary source with a fallback.
"""

from .errors import ConfigError, ConfigLoadError, ConfigWriteError
from .settings import SettingManager
from .sources import EnvSource, IniSource, MemorySource, SettingSource, YamlSource

__all__ = [
    "SettingManager",
    "SettingSource",
    "MemorySource",
    "IniSource",
    "YamlSource",
    "EnvSource",
    "ConfigError",
    "ConfigLoadError",
    "ConfigWriteError",
]
