"""
Error page.

    server.router.ServerError.errorPage = /error

Requests to ``errorPage`` (any method) answer 500 with an HTML page for
the error a handler left in the session under ``error`` (consumed once).
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import HTMLResponse

from ...core.middleware import Middleware
from ...util.html import generate_error_html_page

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
SESSION_KEY = "error"
DEFAULT_ERROR = "Error"


async def error_page(request: Request) -> HTMLResponse:
    session = request.scope.get("session")
    err = session.pop(SESSION_KEY, None) if session is not None else None
    html = generate_error_html_page(err if err is not None else DEFAULT_ERROR, True)
    return HTMLResponse(html, status_code=500)


class ServerError(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.error_page = self.str_option("errorPage")

    def bind_to_router(self) -> None:
        self.router.route(self.error_page, error_page, methods=ALL_METHODS)
