"""
Human-readable failure reports.

Plain text is used on a command line; anything else gets a small,
self-contained HTML document with every interpolated value escaped.
"""

from __future__ import annotations

from html import escape
from typing import Optional

RULE = "=" * 80
DIVIDER = "-" * 80

_HTML_STYLE = """\
    body { font-family: Arial, sans-serif; margin: 20px; background: #f5f5f5; }
    .error-container { background: white; padding: 30px; border-radius: 5px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
    h1 { color: #c00; margin-top: 0; }
    .error-type { color: #666; font-size: 14px; margin-bottom: 20px; }
    .error-message { font-size: 18px; margin-bottom: 20px; padding: 15px; background: #fff3cd; border-left: 4px solid #ffc107; }
    .error-location { margin-bottom: 20px; padding: 10px; background: #f8f9fa; border-radius: 3px; }
    .error-location strong { color: #333; }
    pre { white-space: pre-wrap; }"""


def format_fatal_error(
    type_name: str,
    message: str,
    file: str,
    line: int,
    *,
    command_line: bool,
) -> str:
    """Render the report printed by the fatal handler."""
    if command_line:
        return "\n".join(
            [
                "",
                RULE,
                "FATAL ERROR",
                RULE,
                "",
                f"Type:    {type_name}",
                f"Message: {message}",
                f"File:    {file}",
                f"Line:    {line}",
                RULE,
                "",
            ]
        )

    return _html_document("Fatal Error", type_name, message, file, line)


def format_exception_report(
    type_name: str,
    message: str,
    file: str,
    line: int,
    trace: Optional[str],
    *,
    command_line: bool,
) -> str:
    """Render the report printed by the global exception handler."""
    if command_line:
        return "\n".join(
            [
                "",
                RULE,
                "APPLICATION ERROR",
                RULE,
                "",
                f"Type:    {type_name}",
                f"Message: {message}",
                f"File:    {file}",
                f"Line:    {line}",
                "",
                DIVIDER,
                "Stack Trace:",
                DIVIDER,
                trace or "",
                RULE,
                "",
            ]
        )

    return _html_document("Application Error", type_name, message, file, line, trace)


def _html_document(
    heading: str,
    type_name: str,
    message: str,
    file: str,
    line: int,
    trace: Optional[str] = None,
) -> str:
    type_esc = escape(type_name)
    trace_block = ""
    if trace:
        trace_block = f"\n    <pre class=\"error-trace\">{escape(trace)}</pre>"

    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{heading}: {type_esc}</title>
  <style>
{_HTML_STYLE}
  </style>
</head>
<body>
  <div class="error-container">
    <h1>{heading}</h1>
    <div class="error-type">{type_esc}</div>
    <div class="error-message">{escape(message)}</div>
    <div class="error-location">
      <strong>File:</strong> {escape(file)}<br>
      <strong>Line:</strong> {int(line)}
    </div>{trace_block}
  </div>
</body>
</html>
"""
