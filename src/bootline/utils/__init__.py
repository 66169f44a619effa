"""Small runtime helpers."""

from .system import is_command_line

__all__ = ["is_command_line"]
