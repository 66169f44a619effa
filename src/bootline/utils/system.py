"""Runtime context helpers."""

from __future__ import annotations

import os

# Set by CGI/WSGI-style gateways when a process serves a web request.
WEB_CONTEXT_VARIABLES = ("GATEWAY_INTERFACE", "SERVER_SOFTWARE")


def is_command_line() -> bool:
    """True unless the process runs behind a web gateway."""
    return not any(os.environ.get(name) for name in WEB_CONTEXT_VARIABLES)
