"""
Template engine registration.

    server.router.Templates.extname = .j2
    server.router.Templates.viewsDir = views
    server.router.Templates.layoutsDir = views/layouts
    server.router.Templates.partialsDir = views/partials
    server.router.Templates.defaultLayout = main

Directories are relative to the working directory. The engine is made
available to handlers as ``request.app.state.templates`` and is what the
Static module renders through.
"""

from pathlib import Path

from ...core.middleware import Middleware
from ..templates import DEFAULT_EXTNAME, TemplateEngine


class Templates(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.extname = self.str_option("extname", DEFAULT_EXTNAME)
        self.views_dir = self._dir_option("viewsDir")
        self.layouts_dir = self._dir_option("layoutsDir")
        self.partials_dir = self._dir_option("partialsDir")
        self.default_layout = self.option("defaultLayout")
        if self.default_layout is not None:
            self.default_layout = self.str_option("defaultLayout")

    def _dir_option(self, key: str) -> Path | None:
        if self.option(key) is None:
            return None
        return Path.cwd() / self.str_option(key)

    def bind_to_router(self) -> None:
        self.app.state.templates = TemplateEngine(
            extname=self.extname,
            views_dir=self.views_dir,
            layouts_dir=self.layouts_dir,
            partials_dir=self.partials_dir,
            default_layout=self.default_layout,
        )
