"""
Static files with template rendering.

    server.router.Static.dir = public
    server.router.Static.path = /            (URL prefix, optional)
    server.router.Static.index = index.html  (string or list, optional)

For GET and HEAD requests under the prefix, the module first tries to
render ``<cwd>/<dir>/<request path>`` with the registered template engine
(so ``/about`` renders ``public/about.j2``), then serves the file itself
and otherwise passes the request on.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool
from starlette.responses import FileResponse, HTMLResponse, RedirectResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from ...core.middleware import Middleware
from ...exceptions import TemplateError
from ..router import route_path
from ..templates import TemplateEngine

if TYPE_CHECKING:
    from ...log import Logger

DEFAULT_INDEX = ["index.html"]


class StaticFilesLayer:
    """ASGI middleware serving files from ``directory`` under ``prefix``."""

    def __init__(
        self,
        app: ASGIApp,
        directory: Path,
        prefix: str = "/",
        index: list[str] | None = None,
        engine: Callable[[], TemplateEngine | None] | None = None,
        lg: Logger | None = None,
    ) -> None:
        self.app = app
        self.directory = directory.resolve()
        stripped = "/" + prefix.strip("/")
        self.prefix = stripped if stripped != "/" else ""
        self.index = index or DEFAULT_INDEX
        self.engine = engine
        self.lg = lg

    def _relative(self, path: str) -> str | None:
        if not self.prefix:
            return path.lstrip("/")
        if path != self.prefix and not path.startswith(self.prefix + "/"):
            return None
        return path[len(self.prefix) :].lstrip("/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        path = route_path(scope)
        relative = self._relative(path)
        if relative is None:
            await self.app(scope, receive, send)
            return

        found = await run_in_threadpool(self._lookup, path, relative)
        if found is None:
            await self.app(scope, receive, send)
            return
        kind, value = found
        if kind == "html":
            response: Response = HTMLResponse(value)
        elif kind == "redirect":
            location = scope.get("root_path", "") + path + "/"
            response = RedirectResponse(location, status_code=301)
        else:
            response = FileResponse(value)
        await response(scope, receive, send)

    def _lookup(self, path: str, relative: str) -> tuple[str, Any] | None:
        """
        What to answer for ``relative``, None to pass the request on.

        Blocking (filesystem and template rendering); runs in the threadpool.
        """
        try:
            target = (self.directory / relative).resolve() if relative else self.directory
        except ValueError:
            # NUL byte in the path
            return None
        if not target.is_relative_to(self.directory):
            return None

        html = self._render(target)
        if html is not None:
            return "html", html

        if target.is_dir():
            index = next((target / n for n in self.index if (target / n).is_file()), None)
            if index is None:
                return None
            if not path.endswith("/"):
                return "redirect", None
            target = index

        if not target.is_file():
            return None
        return "file", target

    def _render(self, target: Path) -> str | None:
        engine = self.engine() if self.engine is not None else None
        template = engine.find(target) if engine is not None else None
        if template is None:
            return None
        try:
            return engine.render(template)
        except TemplateError as e:
            if self.lg is not None:
                self.lg.debug(
                    "template render failed, serving file",
                    extra={"path": str(target), "err": e},
                )
            return None


class Static(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.dir = self.str_option("dir")
        self.path = self.str_option("path", "/")
        index = self.option("index")
        self.index = self.list_option("index") if index is not None else None

    def _engine(self) -> TemplateEngine | None:
        return getattr(self.app.state, "templates", None)

    def bind_to_router(self) -> None:
        self.router.use(
            StaticFilesLayer,
            directory=Path.cwd() / self.dir,
            prefix=self.path,
            index=self.index,
            engine=self._engine,
            lg=self.lg,
        )
