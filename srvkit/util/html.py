"""
HTML helpers: escaping and error pages.
"""

import re
from typing import Any

from ..log.serializers import err_serializer

_HTML_CHAR_MAP = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
    "\\": "&#x005C;",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "&#x0009;",
    "\u2028": "&#x2028;",
    "\u2029": "&#x2029;",
}

_HTML_CHARS = re.compile("[&<>\"'\\\\\n\r\t\u2028\u2029]")

HTML_START = "<html><body>"
HTML_END = "</body></html>"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "".join(_text(v) for v in value)
    return str(value)


def escape_html(text: Any) -> str:
    """
    Escape text so it can be placed inside HTML as a value.

    Replaces & < > " ' \\ newline, carriage return, tab, U+2028 and U+2029.
    """
    return _HTML_CHARS.sub(lambda m: _HTML_CHAR_MAP[m.group(0)], _text(text))


def generate_error_html_page(err: Any, show_stack: bool, title: str = "Error") -> str:
    """Complete HTML document describing an error and its causes."""
    return (
        "<!DOCTYPE html>"
        "<html>"
        "<head>"
        f"<title>{escape_html(title)}</title>"
        "</head>"
        "<body>"
        f"{generate_error_html_body(err, show_stack)}"
        "</body>"
        "</html>"
    )


def generate_error_html_body(err: Any, show_stack: bool = True) -> str:
    """
    HTML fragment for an error.

    Accepts exceptions, dicts produced by ``err_serializer`` (for example
    read back from a session) or any other value.
    """
    data = err_serializer(err, show_stack)
    if not isinstance(data, dict):
        return f"<h1>{escape_html(data)}</h1>"

    html = ""
    stack_lines = str(data["stack"]).split("\n") if data.get("stack") else []
    if stack_lines:
        html += f"<h1>{escape_html(stack_lines[0])}</h1>"
        if show_stack:
            html += "<pre>"
            for line in stack_lines[1:]:
                html += "\n" + escape_html(line)
            html += "</pre>"
    elif data.get("name") or data.get("message"):
        html += (
            f"<h1>{escape_html(data.get('name'))}: "
            f"{escape_html(data.get('message'))}</h1>"
        )
    else:
        html += f"<h1>Error:{escape_html(data)}</h1>"

    if data.get("cause"):
        html += "<h2>Caused by:</h2>"
        html += generate_error_html_body(data["cause"], show_stack)
    return html
