"""
bootline Logging Infrastructure

Exports the logging subsystem, log context helpers, and configuration
interface.
"""

from bootline.logging.logger import (
    JSONFormatter,
    LogContext,
    LoggingConfig,
    clear_log_context,
    get_log_context,
    get_logger,
    get_logging_health,
    scoped_log_context,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_health",
    "LogContext",
    "set_log_context",
    "get_log_context",
    "scoped_log_context",
    "clear_log_context",
    "LoggingConfig",
    "JSONFormatter",
]
