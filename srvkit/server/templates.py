"""
Jinja2 template engine.

Views are looked up in ``views_dir`` (and ``partials_dir`` for includes),
layouts in ``layouts_dir``. When a layout applies, the view is rendered
first and handed to the layout as ``body``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2
from markupsafe import Markup
from starlette.responses import HTMLResponse

from ..exceptions import TemplateError

DEFAULT_EXTNAME = ".j2"
LAYOUT_PREFIX = "layouts"

# Sentinel meaning "use the engine's default layout"
DEFAULT_LAYOUT: Any = object()


class TemplateEngine:
    """
    Example:
        engine = TemplateEngine(views_dir="views", layouts_dir="views/layouts",
                                default_layout="main")
        html = engine.render("home", {"user": "ada"})
    """

    def __init__(
        self,
        extname: str = DEFAULT_EXTNAME,
        views_dir: str | Path | None = None,
        layouts_dir: str | Path | None = None,
        partials_dir: str | Path | None = None,
        default_layout: str | None = None,
    ) -> None:
        self.extname = extname if extname.startswith(".") else "." + extname
        self.views_dir = Path(views_dir) if views_dir else None
        self.layouts_dir = Path(layouts_dir) if layouts_dir else None
        self.partials_dir = Path(partials_dir) if partials_dir else None
        self.default_layout = default_layout

        search = [str(d) for d in (self.views_dir, self.partials_dir) if d is not None]
        loaders: list[jinja2.BaseLoader] = [jinja2.FileSystemLoader(search)]
        if self.layouts_dir is not None:
            loaders.append(
                jinja2.PrefixLoader(
                    {LAYOUT_PREFIX: jinja2.FileSystemLoader(str(self.layouts_dir))}
                )
            )
        self.env = jinja2.Environment(
            loader=jinja2.ChoiceLoader(loaders), autoescape=True
        )

    def _name(self, name: str) -> str:
        return name if name.endswith(self.extname) else name + self.extname

    def find(self, path: str | Path) -> Path | None:
        """Template file for a path without extension, if it exists."""
        candidate = Path(str(path) + self.extname)
        return candidate if candidate.is_file() else None

    def _load(self, view: str | Path) -> jinja2.Template:
        if isinstance(view, Path) or Path(view).is_absolute():
            path = Path(view)
            source = path.read_text(encoding="utf-8")
            return self.env.from_string(source)
        return self.env.get_template(self._name(view))

    def render(
        self,
        view: str | Path,
        context: dict[str, Any] | None = None,
        layout: Any = DEFAULT_LAYOUT,
    ) -> str:
        """
        Render a view by name (relative to the views) or by file path.

        Raises:
            TemplateError: Template missing or failing to render
        """
        context = dict(context or {})
        if layout is DEFAULT_LAYOUT:
            layout = self.default_layout
        try:
            body = self._load(view).render(**context)
            if not layout or self.layouts_dir is None:
                return body
            template = self.env.get_template(f"{LAYOUT_PREFIX}/{self._name(layout)}")
            return template.render(**context, body=Markup(body))
        except (jinja2.TemplateError, OSError) as e:
            raise TemplateError(f"Failed to render '{view}'", cause=e) from e

    def response(
        self,
        view: str | Path,
        context: dict[str, Any] | None = None,
        status_code: int = 200,
        layout: Any = DEFAULT_LAYOUT,
    ) -> HTMLResponse:
        return HTMLResponse(self.render(view, context, layout), status_code=status_code)
