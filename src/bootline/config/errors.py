"""
Configuration error hierarchy for bootline.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigLoadError (a source cannot be read or parsed)
└── ConfigWriteError (a source cannot be written)
"""


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     source = YamlSource("config/application.yaml")
    ... except ConfigError as e:
    ...     logger.error(f"Settings unavailable: {e}")
    """

    pass


class ConfigLoadError(ConfigError):
    """
    Raised when a settings source cannot be loaded.

    This exception is raised when:
    - The backing file is missing or unreadable
    - The file cannot be parsed
    - The parsed document is not a mapping of sections
    """

    pass


class ConfigWriteError(ConfigError):
    """Raised when a value cannot be written to a settings source."""

    pass


__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "ConfigWriteError",
]
