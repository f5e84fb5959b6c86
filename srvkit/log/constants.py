"""
Constants for the logging system.

Level numbers follow the stdlib scale with TRACE added below DEBUG and
FATAL sharing CRITICAL's slot.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_NAME: str = "srv"
    DEFAULT_LEVEL: str = "info"
    DEFAULT_OUTPUT_MODE: str = "long"

    # Custom log levels
    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5}

    # Level thresholds used by the is_*_enabled predicates
    TRACE: int = 5
    DEBUG: int = logging.DEBUG
    INFO: int = logging.INFO
    WARN: int = logging.WARNING
    ERROR: int = logging.ERROR
    FATAL: int = logging.CRITICAL

    LEVEL_NAMES: dict[str, int] = {
        "trace": 5,
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "fatal": logging.CRITICAL,
        "critical": logging.CRITICAL,
    }

    # Display names, bunyan style
    LEVEL_LABELS: dict[int, str] = {
        5: "TRACE",
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "FATAL",
    }

    # Numeric levels as written by the bunyan output mode
    BUNYAN_LEVELS: dict[int, int] = {
        5: 10,
        logging.DEBUG: 20,
        logging.INFO: 30,
        logging.WARNING: 40,
        logging.ERROR: 50,
        logging.CRITICAL: 60,
    }

    OUTPUT_MODES: tuple[str, ...] = ("short", "long", "simple", "json", "bunyan")

    # Fields a child logger never takes over from its own configuration
    CORE_FIELDS: tuple[str, ...] = (
        "name",
        "level",
        "src",
        "serializers",
        "stream",
        "streams",
    )

    # Configuration keys understood by root loggers; anything else is context
    CONFIG_KEYS: tuple[str, ...] = CORE_FIELDS + ("outputMode", "file")
