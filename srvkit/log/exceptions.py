"""
Custom exceptions for the logging system.
"""

from typing import Any

from ..exceptions import LoggingError


class InvalidLogLevelError(LoggingError):
    """Raised when an invalid log level is specified."""

    def __init__(self, level: Any) -> None:
        self.level = level
        super().__init__(f"Invalid log level: {level}")


class InvalidOutputModeError(LoggingError):
    """Raised when an unknown output mode is configured."""

    def __init__(self, mode: Any) -> None:
        self.mode = mode
        super().__init__(f"Invalid output mode: {mode}")
