"""
Unified exception hierarchy for srvkit.

Every error raised by the toolkit is a ``SrvError`` that may carry the
error that caused it. The chain is explicit (the ``cause`` attribute) and
also mirrored into ``__cause__`` so tracebacks show it too.
"""

from collections.abc import Iterator
from typing import Any


class SrvError(Exception):
    """
    Base exception for all srvkit errors.

    Example:
        try:
            store.initialize()
        except SrvError as e:
            lg.error("startup failed", extra={"err": e})
    """

    def __init__(
        self, message: str, cause: BaseException | None = None, **context: Any
    ) -> None:
        """
        Initialize the exception with a message, optional cause and context.

        Args:
            message: Human-readable error message
            cause: Error that led to this one, if any
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context
        self._cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        """The wrapped error, or None."""
        return self._cause

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(SrvError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found or unreadable
        - Malformed properties line or YAML document
        - Circular include, unknown ${variable}
        - Key conflicts between a value and a namespace
    """

    pass


class LoggingError(SrvError):
    """Logging setup errors (unknown output mode, bad level)."""

    pass


class AssemblyError(SrvError):
    """
    Router assembly errors.

    Raised while building a middleware chain from configuration: missing
    module configuration, failed instantiation or a module that is not a
    Middleware.
    """

    pass


class ServerError(SrvError):
    """
    Listener errors.

    Examples:
        - Router could not be assembled
        - TLS key or certificate unreadable
        - Port already in use
        - Stop requested while not running
    """

    pass


class HookError(SrvError):
    """beforeStart / afterStart hook failures."""

    pass


class TemplateError(SrvError):
    """Template lookup or rendering errors."""

    pass


class ResourceError(SrvError):
    """Resource pool errors."""

    pass


def iter_causes(err: BaseException | None) -> Iterator[BaseException]:
    """
    Iterate over an error and the errors that caused it.

    Follows ``cause`` on SrvError and ``__cause__`` elsewhere. Stops on
    cycles.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if isinstance(err, SrvError):
            err = err.cause
        else:
            err = err.__cause__


__all__ = [
    "SrvError",
    "ConfigError",
    "LoggingError",
    "AssemblyError",
    "ServerError",
    "HookError",
    "TemplateError",
    "ResourceError",
    "iter_causes",
]
