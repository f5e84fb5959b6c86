"""
Log formatters, one per output mode.

All formatters read the context fields the Logger attached to the record
and render serialized errors (the ``err`` field) with their cause chain.
"""

import json
import logging
import os
import socket
from datetime import UTC, datetime
from typing import Any

from .constants import LogConstants
from .exceptions import InvalidOutputModeError

_HOSTNAME = socket.gethostname()


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields attached by Logger.makeRecord (empty for foreign records)."""
    return dict(getattr(record, "__srv__fields", None) or {})


def level_label(levelno: int) -> str:
    if levelno in LogConstants.LEVEL_LABELS:
        return LogConstants.LEVEL_LABELS[levelno]
    return logging.getLevelName(levelno)


def iso_time(record: logging.LogRecord) -> str:
    ts = datetime.fromtimestamp(record.created, tz=UTC)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_error(err: Any, indent: str = "    ") -> list[str]:
    """Render a serialized error as lines, following ``cause`` entries."""
    lines: list[str] = []
    first = True
    while err is not None:
        prefix = "" if first else "Caused by: "
        if isinstance(err, dict):
            text = err.get("stack") or _error_head(err)
            head, *rest = str(text).splitlines() or [""]
            lines.append(indent + prefix + head)
            lines.extend(indent + line for line in rest)
            err = err.get("cause")
        else:
            lines.append(indent + prefix + str(err))
            err = None
        first = False
    return lines


def _error_head(err: dict[str, Any]) -> str:
    name = err.get("name", "Error")
    message = err.get("message")
    return f"{name}: {message}" if message else str(name)


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _format_fields(fields: dict[str, Any]) -> str:
    parts = [f"[{key}:{_format_value(value)}]" for key, value in fields.items()]
    return " " + " ".join(parts) if parts else ""


class _SrvFormatter(logging.Formatter):
    """Shared helpers for the text formatters."""

    def _message(self, record: logging.LogRecord) -> str:
        return record.getMessage()

    def _src(self, record: logging.LogRecord) -> str | None:
        if not getattr(record, "__srv__src", False):
            return None
        return f"{os.path.basename(record.pathname)}:{record.lineno} in {record.funcName}"

    def _trailer(self, record: logging.LogRecord, err: Any) -> list[str]:
        lines: list[str] = []
        if err is not None:
            lines.extend(render_error(err))
        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            lines.extend("    " + line for line in exc_text.splitlines())
        return lines


class LongFormatter(_SrvFormatter):
    """
    Multi-line output.

    Example:
        [2026-01-01T10:00:00.000Z]  INFO: srv/4242 on host: started [port:8080]
            ServerError: Failed to create router
            Caused by: AssemblyError: Missing module 'X' configuration
    """

    def format(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        err = fields.pop("err", None)
        name = record.name
        src = self._src(record)
        where = f"{name}/{record.process} on {_HOSTNAME}"
        if src:
            where += f" ({src})"
        line = (
            f"[{iso_time(record)}] {level_label(record.levelno):>5}: {where}: "
            f"{self._message(record)}{_format_fields(fields)}"
        )
        return "\n".join([line, *self._trailer(record, err)])


class ShortFormatter(_SrvFormatter):
    """Time of day, level, name and message on one line (errors below)."""

    def format(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        err = fields.pop("err", None)
        clock = iso_time(record)[11:]
        line = (
            f"{clock} {level_label(record.levelno):>5} {record.name}: "
            f"{self._message(record)}{_format_fields(fields)}"
        )
        return "\n".join([line, *self._trailer(record, err)])


class SimpleFormatter(_SrvFormatter):
    """``LEVEL: message``."""

    def format(self, record: logging.LogRecord) -> str:
        fields = record_fields(record)
        line = f"{level_label(record.levelno)}: {self._message(record)}"
        err = fields.get("err")
        if isinstance(err, dict):
            line += f" ({_error_head(err)})"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record, field names readable by humans."""

    def _record_to_dict(self, record: logging.LogRecord) -> dict[str, Any]:
        data: dict[str, Any] = {
            "time": iso_time(record),
            "level": level_label(record.levelno).lower(),
            "name": record.name,
            "msg": record.getMessage(),
        }
        if getattr(record, "__srv__src", False):
            data["src"] = {
                "file": record.pathname,
                "line": record.lineno,
                "func": record.funcName,
            }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        for key, value in record_fields(record).items():
            data.setdefault(key, value)
        return data

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self._record_to_dict(record), default=str)


class BunyanFormatter(JSONFormatter):
    """JSON records using the bunyan field names and numeric levels."""

    def _record_to_dict(self, record: logging.LogRecord) -> dict[str, Any]:
        data = super()._record_to_dict(record)
        data["level"] = LogConstants.BUNYAN_LEVELS.get(record.levelno, record.levelno)
        return {
            "v": 0,
            "name": data.pop("name"),
            "hostname": _HOSTNAME,
            "pid": record.process,
            "level": data.pop("level"),
            "msg": data.pop("msg"),
            "time": data.pop("time"),
            **data,
        }


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "long": LongFormatter,
    "short": ShortFormatter,
    "simple": SimpleFormatter,
    "json": JSONFormatter,
    "bunyan": BunyanFormatter,
}


def formatter_for(mode: str) -> logging.Formatter:
    """Create the formatter for an output mode."""
    try:
        return _FORMATTERS[mode]()
    except KeyError:
        raise InvalidOutputModeError(mode) from None
