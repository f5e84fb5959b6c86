"""
Middleware contract.

A middleware module receives the application, the router being assembled
and its own configuration section (``server.router.<Id>``), and binds
request handling onto the router in ``bind_to_router``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ..log import Logger
    from ..server.router import Router

_MISSING: Any = object()


class Middleware(ABC):
    """Base class for router modules."""

    def __init__(
        self,
        app: FastAPI,
        router: Router,
        options: Mapping[str, Any] | None = None,
        lg: Logger | None = None,
        name: str | None = None,
    ) -> None:
        """
        Args:
            app: Application the router is mounted on
            router: Router being assembled
            options: This module's configuration section
            lg: Logger for the module
            name: Identifier the module was configured under
        """
        if options is not None and not isinstance(options, Mapping):
            raise TypeError(
                f"configuration of '{name}' must be a mapping, "
                f"got {type(options).__name__}"
            )
        self.app = app
        self.router = router
        self.options: Mapping[str, Any] = options or {}
        self.lg = lg
        self.name = name or type(self).__name__

    @abstractmethod
    def bind_to_router(self) -> None:
        """Register this module's request handling on ``self.router``."""
        pass

    @property
    def config_path(self) -> str:
        return f"server.router.{self.name}"

    def option(self, key: str, default: Any = None) -> Any:
        value = self.options.get(key)
        return default if value is None else value

    def _typed(
        self, key: str, types: type | tuple[type, ...], label: str, default: Any
    ) -> Any:
        value = self.options.get(key)
        if value is None:
            value = default
        allowed = _as_tuple(types)
        # bool is an int subclass; only accept it where asked for
        valid = isinstance(value, allowed) and (
            bool in allowed or not isinstance(value, bool)
        )
        if not valid:
            raise AssertionError(f"'{self.config_path}.{key}' must be {label}")
        return value

    def str_option(self, key: str, default: Any = _MISSING) -> str:
        """String option; missing without a default or mistyped is an assertion."""
        return self._typed(key, str, "a string", default)

    def bool_option(self, key: str, default: Any = _MISSING) -> bool:
        return self._typed(key, bool, "a boolean", default)

    def number_option(self, key: str, default: Any = _MISSING) -> int | float:
        return self._typed(key, (int, float), "a number", default)

    def list_option(self, key: str, default: Any = _MISSING) -> list[str]:
        """A string or list of strings, always returned as a list."""
        value = self._typed(key, (str, list), "a string or list", default)
        return [value] if isinstance(value, str) else list(value)


def _as_tuple(types: type | tuple[type, ...]) -> tuple[type, ...]:
    return types if isinstance(types, tuple) else (types,)
