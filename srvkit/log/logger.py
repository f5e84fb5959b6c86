"""
Logger class for the logging system.

Extends the stdlib logger with bound context fields, field serializers,
TRACE and FATAL levels and the level-gate predicates used to skip
building expensive log payloads.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .config import LogConfig
from .constants import LogConstants


class Logger(logging.Logger):
    """
    Logger with context fields and child "view" loggers.

    A root logger owns its handlers. Children created through
    ``LoggerFactory.create(conf, parent)`` have no handlers of their own;
    they delegate to the root's handlers and add their context fields.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        extra: Mapping[str, Any] | None = None,
    ):
        if config is None:
            config = LogConfig()
        super().__init__(name, config.level)
        self._config = config
        self._extra: dict[str, Any] = dict(config.fields)
        if extra:
            self._extra.update(extra)
        self._root_logger: Logger | None = None
        self.propagate = False

    @property
    def config(self) -> LogConfig:
        """Configuration of the root this logger writes through."""
        return self._config

    @property
    def fields(self) -> dict[str, Any]:
        """Context fields added to every record."""
        return dict(self._extra)

    @property
    def serializers(self) -> Mapping[str, Callable[[Any], Any]]:
        return self._config.serializers

    def setLevel(self, level: int | str) -> None:
        """Set level and clear this logger's cache.

        Loggers built by the factory are not registered in loggerDict, so
        the manager never clears their cache for us.
        """
        super().setLevel(level)
        self._cache.clear()  # type: ignore[attr-defined]

    def _serialize(self, fields: dict[str, Any]) -> dict[str, Any]:
        serializers = self.serializers
        return {
            key: serializers[key](value) if key in serializers else value
            for key, value in fields.items()
        }

    def makeRecord(  # type: ignore[override]
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: Mapping[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        """Create a record carrying the merged, serialized context fields."""
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func=func, sinfo=sinfo
        )
        # Kept off the record's own namespace so fields like "name" never clash
        setattr(record, "__srv__fields", self._serialize(merged))
        setattr(record, "__srv__src", self._config.src)
        return record

    def callHandlers(self, record: logging.LogRecord) -> None:
        """Delegate to the root's handlers for child loggers."""
        if self._root_logger is not None:
            for handler in self._root_logger.handlers:
                if record.levelno >= handler.level:
                    handler.handle(record)
        else:
            super().callHandlers(record)

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a TRACE level message."""
        level = LogConstants.CUSTOM_LEVELS["TRACE"]
        if self.isEnabledFor(level):
            kwargs.setdefault("stacklevel", 2)
            self._log(level, msg, args, **kwargs)

    def fatal(self, msg: str, *args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        """Log a FATAL level message."""
        if self.isEnabledFor(LogConstants.FATAL):
            kwargs.setdefault("stacklevel", 2)
            self._log(LogConstants.FATAL, msg, args, **kwargs)

    def _enabled(self, threshold: int) -> bool:
        return self.getEffectiveLevel() <= threshold

    @property
    def is_trace_enabled(self) -> bool:
        return self._enabled(LogConstants.TRACE)

    @property
    def is_debug_enabled(self) -> bool:
        return self._enabled(LogConstants.DEBUG)

    @property
    def is_info_enabled(self) -> bool:
        return self._enabled(LogConstants.INFO)

    @property
    def is_warn_enabled(self) -> bool:
        return self._enabled(LogConstants.WARN)

    @property
    def is_error_enabled(self) -> bool:
        return self._enabled(LogConstants.ERROR)

    @property
    def is_fatal_enabled(self) -> bool:
        return self._enabled(LogConstants.FATAL)

    def child(self, **fields: Any) -> "Logger":
        """Shortcut for ``LoggerFactory.create(fields, parent=self)``."""
        from .factory import LoggerFactory

        return LoggerFactory.create_child(self, fields)
