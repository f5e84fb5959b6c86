"""
Registry of router modules and lifecycle hooks.

Configuration refers to middleware and hooks by identifier. Identifiers
are mapped to factories here, when the application is put together,
instead of importing code by name at runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from importlib.metadata import entry_points
from typing import Any

from .middleware import Middleware

logger = logging.getLogger(__name__)

MIDDLEWARE_ENTRY_POINT_GROUP = "srvkit.middleware"
HOOK_ENTRY_POINT_GROUP = "srvkit.hooks"

# Prefix under which built-in modules are also reachable
BUILTIN_PREFIX = "srvkit.server."

MiddlewareFactory = Callable[..., Any]


def descriptor_key(descriptor: Any, identifier: str) -> str:
    """
    Registry key named by a descriptor ``{module, class?}``.

    ``module`` and ``class`` join with a dot (``srvkit.server`` and
    ``Static`` give ``srvkit.server.Static``); either one alone is the key.
    Without a descriptor the configured identifier is the key.

    Raises:
        AssertionError: ``module`` or ``class`` is not a string
    """
    if not isinstance(descriptor, Mapping):
        return identifier
    module = descriptor.get("module")
    cls = descriptor.get("class")
    for key, value in (("module", module), ("class", cls)):
        if value is not None and not isinstance(value, str):
            raise AssertionError(f"descriptor '{key}' of '{identifier}' must be a string")
    if module and cls:
        return f"{module}.{cls}"
    return cls or module or identifier


class Registry:
    """
    Identifier to factory mapping.

    Example:
        >>> registry = Registry.with_builtins()
        >>> registry.register("Audit", AuditMiddleware)
        >>> registry.register_hook("warmup", Warmup)
    """

    def __init__(self) -> None:
        self._middleware: dict[str, MiddlewareFactory] = {}
        self._hooks: dict[str, Callable[[], Any]] = {}

    @classmethod
    def with_builtins(cls) -> Registry:
        """Registry holding every built-in router module."""
        from ..server.middleware import BUILTIN_MIDDLEWARE

        registry = cls()
        for name, factory in BUILTIN_MIDDLEWARE.items():
            registry.register(name, factory)
            registry.register(BUILTIN_PREFIX + name, factory)
        return registry

    def register(self, identifier: str, factory: MiddlewareFactory) -> None:
        """
        Register a middleware factory.

        Classes must derive from Middleware. Other callables are accepted
        and their result is checked when the router is assembled.

        Raises:
            ValueError: Empty identifier
            TypeError: A class that is not a Middleware
        """
        if not identifier:
            raise ValueError("identifier must not be empty")
        if isinstance(factory, type) and not issubclass(factory, Middleware):
            raise TypeError(
                f"'{factory.__name__}' registered as '{identifier}' is not a Middleware"
            )
        self._middleware[identifier] = factory

    def register_hook(self, identifier: str, factory: Callable[[], Any]) -> None:
        """Register a lifecycle hook class (or zero-argument factory)."""
        if not identifier:
            raise ValueError("identifier must not be empty")
        self._hooks[identifier] = factory

    def resolve(self, identifier: str) -> MiddlewareFactory:
        """
        Raises:
            KeyError: Unknown identifier
        """
        try:
            return self._middleware[identifier]
        except KeyError:
            raise KeyError(f"Unknown middleware module '{identifier}'") from None

    def resolve_hook(self, identifier: str) -> Callable[[], Any]:
        try:
            return self._hooks[identifier]
        except KeyError:
            raise KeyError(f"Unknown hook module '{identifier}'") from None

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._middleware

    @property
    def middleware_names(self) -> list[str]:
        return sorted(self._middleware)

    @property
    def hook_names(self) -> list[str]:
        return sorted(self._hooks)

    def load_entry_points(self) -> None:
        """Register modules advertised by installed distributions."""
        for ep in entry_points(group=MIDDLEWARE_ENTRY_POINT_GROUP):
            self.register(ep.name, ep.load())
            logger.debug("registered middleware entry point %s", ep.name)
        for ep in entry_points(group=HOOK_ENTRY_POINT_GROUP):
            self.register_hook(ep.name, ep.load())
            logger.debug("registered hook entry point %s", ep.name)
