"""
Configuration classes for the logging system.

``LogConfig`` is the resolved, immutable configuration of a root logger.
It is built from a mapping such as the ``logging`` section of the
configuration store, merged over the factory defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import IO, Any

from .constants import LogConstants
from .exceptions import InvalidLogLevelError, InvalidOutputModeError


def resolve_level(level: str | int) -> int:
    """Resolve a level name or number to a stdlib level number."""
    if isinstance(level, bool):
        raise InvalidLogLevelError(level)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().lower()
        if name.isnumeric():
            return int(name)
        if name in LogConstants.LEVEL_NAMES:
            return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


def resolve_output_mode(mode: str) -> str:
    if mode not in LogConstants.OUTPUT_MODES:
        raise InvalidOutputModeError(mode)
    return mode


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable configuration for root loggers.

    Attributes:
        name: Logger name, written into every record
        level: Stdlib level number
        src: Include the call site (file, line, function) in output
        output_mode: One of short, long, simple, json, bunyan
        stream: "stdout", "stderr" or a writable text stream
        file: Optional log file path, used instead of the stream
        serializers: Field name to serializer callable
        fields: Context fields added to every record
    """

    name: str = LogConstants.DEFAULT_NAME
    level: int = logging.INFO
    src: bool = False
    output_mode: str = LogConstants.DEFAULT_OUTPUT_MODE
    stream: str | IO[str] = "stdout"
    file: str | None = None
    serializers: Mapping[str, Callable[[Any], Any]] = field(default_factory=dict)
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls, conf: Mapping[str, Any], defaults: Mapping[str, Any] | None = None
    ) -> LogConfig:
        """
        Create LogConfig from a mapping merged over defaults.

        Keys outside the known configuration keys become context fields.

        Args:
            conf: Logger configuration (e.g. ``{"name": "api", "level": "debug"}``)
            defaults: Process defaults filling missing keys

        Returns:
            LogConfig instance
        """
        merged: dict[str, Any] = dict(defaults or {})
        merged.update(conf)

        from .serializers import DEFAULT_SERIALIZERS

        serializers = dict(DEFAULT_SERIALIZERS)
        serializers.update(merged.get("serializers") or {})

        return cls(
            name=str(merged.get("name", LogConstants.DEFAULT_NAME)),
            level=resolve_level(merged.get("level", LogConstants.DEFAULT_LEVEL)),
            src=bool(merged.get("src", False)),
            output_mode=resolve_output_mode(
                merged.get("outputMode", LogConstants.DEFAULT_OUTPUT_MODE)
            ),
            stream=merged.get("stream", "stdout"),
            file=merged.get("file"),
            serializers=serializers,
            fields={
                k: v for k, v in merged.items() if k not in LogConstants.CONFIG_KEYS
            },
        )
