"""
Factory for creating and configuring loggers.

A ``LoggerFactory`` owns the default configuration applied to root
loggers it creates. Applications keep one factory in their context and
update its defaults from the ``logging`` configuration section.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

from .config import LogConfig
from .constants import LogConstants
from .formatters import formatter_for
from .logger import Logger

# Configuration accepted by create(): a name, a class or a mapping
LoggerConf = str | type | Mapping[str, Any] | None


class LoggerFactory:
    """Factory for root and child loggers."""

    def __init__(self, defaults: Mapping[str, Any] | None = None) -> None:
        self._defaults: dict[str, Any] = {}
        if defaults:
            self.set_default_config(defaults)

    @property
    def defaults(self) -> dict[str, Any]:
        return dict(self._defaults)

    def set_default_config(self, conf: Mapping[str, Any] | None) -> None:
        """
        Replace the defaults used for root loggers created from now on.

        Loggers created earlier keep their configuration.

        Args:
            conf: Mapping with any of name, level, src, outputMode, stream,
                  file and extra context fields. None leaves defaults alone.

        Raises:
            InvalidLogLevelError: level is unknown
            InvalidOutputModeError: outputMode is unknown
        """
        if conf is None:
            return
        candidate = dict(conf)
        # Validates level and outputMode before anything is replaced
        LogConfig.from_mapping(candidate)
        self._defaults = candidate

    def reset_default_config(self) -> None:
        self._defaults = {}

    def create(self, conf: LoggerConf = None, parent: Logger | None = None) -> Logger:
        """
        Create a logger.

        Example:
            >>> factory = LoggerFactory({"level": "debug"})
            >>> lg = factory.create("api")
            >>> db = factory.create("db", parent=lg)
            >>> db.fields
            {'childName': 'db'}

        Args:
            conf: Logger name, a class (its name becomes the ``className``
                  field) or a configuration mapping
            parent: When given, a child of this logger is created

        Returns:
            Logger instance
        """
        if parent is not None:
            return self.create_child(parent, conf)
        return self._create_root(self._root_conf(conf))

    @staticmethod
    def _root_conf(conf: LoggerConf) -> dict[str, Any]:
        if conf is None:
            return {}
        if isinstance(conf, str):
            return {"name": conf}
        if isinstance(conf, type):
            return {"className": conf.__name__}
        return dict(conf)

    @staticmethod
    def _child_fields(conf: LoggerConf) -> dict[str, Any]:
        if conf is None:
            return {}
        if isinstance(conf, str):
            return {"childName": conf}
        if isinstance(conf, type):
            return {"className": conf.__name__}
        return {k: v for k, v in conf.items() if k not in LogConstants.CORE_FIELDS}

    def _create_root(self, conf: dict[str, Any]) -> Logger:
        config = LogConfig.from_mapping(conf, self._defaults)
        lg = Logger(config.name, config)
        lg.setLevel(config.level)
        handler = self._make_handler(config)
        handler.setFormatter(formatter_for(config.output_mode))
        lg.addHandler(handler)
        return lg

    @staticmethod
    def _make_handler(config: LogConfig) -> logging.Handler:
        if config.file:
            return logging.FileHandler(config.file, encoding="utf-8")
        stream = config.stream
        if stream == "stdout":
            return logging.StreamHandler(sys.stdout)
        if stream == "stderr":
            return logging.StreamHandler(sys.stderr)
        return logging.StreamHandler(stream)  # type: ignore[arg-type]

    @staticmethod
    def create_child(parent: Logger, conf: LoggerConf = None) -> Logger:
        """
        Create a child "view" logger.

        Core fields (name, level, src, serializers, stream, streams) are
        dropped from ``conf``; what is left is added as context. The child
        writes through the root's handlers at the parent's level.
        """
        root = parent._root_logger if parent._root_logger is not None else parent
        lg = parent.__class__(parent.name, parent.config, parent.fields)
        lg._extra.update(LoggerFactory._child_fields(conf))
        lg.setLevel(parent.level)
        lg._root_logger = root
        lg.parent = parent
        return lg
