"""
Router and router assembly.

A ``Router`` is an ordered list of layers (ASGI middleware, routes and
mounts) in front of a terminal handler. Layers see each request in the
order they were added; a route that does not match hands the request to
the next layer.

``RouterAssembler`` builds a Router from configuration:

    server.router.modules = Session,Static         (default router)
    server.router.admin.modules = Session,JSON     (router named "admin")
    server.router.Session.secret = ...             (module configuration)
    server.router.assets.class = Static            (alias of a registered module)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from starlette.responses import PlainTextResponse
from starlette.routing import BaseRoute, Match, Mount, Route
from starlette.types import ASGIApp, Receive, Scope, Send

from ..core.middleware import Middleware
from ..core.registry import descriptor_key
from ..exceptions import AssemblyError

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ..config import ConfigStore
    from ..core.registry import Registry
    from ..log import Logger

# Wraps the rest of the chain, returning the wrapping app
Layer = Callable[[ASGIApp], ASGIApp]


def route_path(scope: Scope) -> str:
    """Request path relative to where the router is mounted."""
    path: str = scope["path"]
    root_path: str = scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        return path[len(root_path) :] or "/"
    return path


async def not_found(scope: Scope, receive: Receive, send: Send) -> None:
    """Terminal handler answering 404 for anything nobody handled."""
    if scope["type"] != "http":
        return
    response = PlainTextResponse("Not Found", status_code=404)
    await response(scope, receive, send)


class RouteLayer:
    """Hands a request to ``route`` on a full match, to the next layer otherwise."""

    def __init__(self, app: ASGIApp, route: BaseRoute) -> None:
        self.app = app
        self.route = route

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            match, child_scope = self.route.matches(scope)
            if match == Match.FULL:
                scope.update(child_scope)
                await self.route.handle(scope, receive, send)
                return
        await self.app(scope, receive, send)


class Router:
    """
    Express-style ordered chain.

    Example:
        router = Router()
        router.use(SessionMiddleware, secret_key="s3cret")
        router.route("/health", health, methods=["GET"])
        app = router.build()
    """

    def __init__(self) -> None:
        self._layers: list[Layer] = []
        self._terminal: ASGIApp = not_found

    @property
    def layers(self) -> list[Layer]:
        return list(self._layers)

    def add_layer(self, layer: Layer) -> None:
        self._layers.append(layer)

    def use(self, middleware_class: Callable[..., ASGIApp], **options: Any) -> None:
        """Add an ASGI middleware class (called as ``cls(app, **options)``)."""
        self._layers.append(lambda app: middleware_class(app, **options))

    def route(
        self,
        path: str,
        endpoint: Callable[..., Any],
        methods: Sequence[str] | None = None,
        name: str | None = None,
    ) -> None:
        """Add a Starlette route; ``methods=None`` means GET (and HEAD)."""
        route = Route(path, endpoint, methods=list(methods) if methods else None, name=name)
        self._layers.append(lambda app: RouteLayer(app, route))

    def mount(self, path: str, app: ASGIApp, name: str | None = None) -> None:
        mount = Mount(path, app=app, name=name)
        self._layers.append(lambda nxt: RouteLayer(nxt, mount))

    def terminal(self, app: ASGIApp) -> None:
        """Set the handler reached when no layer answered."""
        self._terminal = app

    def build(self) -> ASGIApp:
        app = self._terminal
        for layer in reversed(self._layers):
            app = layer(app)
        return app


class RouterAssembler:
    """Builds routers from the ``server.router`` configuration."""

    def __init__(self, config: ConfigStore, registry: Registry, lg: Logger) -> None:
        self._config = config
        self._registry = registry
        self._lg = lg

    @staticmethod
    def modules_key(router_name: str | None) -> str:
        return "server.router." + (f"{router_name}." if router_name else "") + "modules"

    def _module_list(self, router_name: str | None) -> list[Any]:
        modules = self._config.get_value(self.modules_key(router_name))
        if modules is None:
            return []
        if isinstance(modules, list):
            return modules
        return [modules]

    def build(self, router_name: str | None, app: FastAPI) -> Router:
        """
        Assemble the router named ``router_name`` (None for the default).

        Modules are processed one at a time in configured order. The
        first failure stops assembly; modules bound before it stay bound.

        Raises:
            AssemblyError: Missing module configuration, module that could
                not be instantiated, or an object that is not a Middleware
        """
        router = Router()
        for module in self._module_list(router_name):
            if not module:
                continue
            self._bind_module(str(module), router, app)
        router.terminal(not_found)
        return router

    def _bind_module(self, module: str, router: Router, app: FastAPI) -> None:
        self._lg.debug("Initializing router module", extra={"module": module})

        options = self._config.get_value(f"server.router.{module}")
        if options is None:
            raise AssemblyError(
                f"Missing module '{module}' configuration", module=module
            )

        try:
            factory = self._registry.resolve(descriptor_key(options, module))
            instance = factory(
                app, router, options, self._lg.child(module=module), module
            )
        except Exception as e:
            raise AssemblyError(
                f"Failed to load and instantiate middleware module '{module}'",
                cause=e,
                module=module,
            ) from e

        if not isinstance(instance, Middleware):
            raise AssemblyError(
                f"Loaded module '{module}' is not instance of Middleware",
                module=module,
            )

        instance.bind_to_router()
