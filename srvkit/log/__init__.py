"""
Structured logging built on the stdlib ``logging`` module.

Provides:
- Named root loggers and child "view" loggers carrying context fields
- TRACE and FATAL levels and ``is_*_enabled`` level gates
- Error serialization that follows chains of causes
- Output modes: long, short, simple, json, bunyan
"""

import logging

from .config import LogConfig, resolve_level
from .constants import LogConstants
from .exceptions import InvalidLogLevelError, InvalidOutputModeError
from .factory import LoggerFactory
from .formatters import (
    BunyanFormatter,
    JSONFormatter,
    LongFormatter,
    ShortFormatter,
    SimpleFormatter,
    formatter_for,
)
from .logger import Logger
from .serializers import err_serializer

logging.TRACE = LogConstants.CUSTOM_LEVELS["TRACE"]  # type: ignore[attr-defined]
logging.addLevelName(logging.TRACE, "TRACE")  # type: ignore[attr-defined]

__all__ = [
    "Logger",
    "LoggerFactory",
    "LogConfig",
    "LogConstants",
    "resolve_level",
    "err_serializer",
    "formatter_for",
    "LongFormatter",
    "ShortFormatter",
    "SimpleFormatter",
    "JSONFormatter",
    "BunyanFormatter",
    "InvalidLogLevelError",
    "InvalidOutputModeError",
]
