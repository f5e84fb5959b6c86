"""
Request logging.

    server.router.RequestLog.logName = request     (optional)
    server.router.RequestLog.requestStart = false  (optional)

Every finished request is logged at info with method, url, status and
duration. With ``requestStart`` the arrival is logged too, at debug.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ...core.middleware import Middleware

if TYPE_CHECKING:
    from ...log import Logger

DEFAULT_LOG_NAME = "request"


def request_url(scope: Scope) -> str:
    root_path = scope.get("root_path", "")
    path = scope["path"]
    if not path.startswith(root_path):
        path = root_path + path
    query = scope.get("query_string", b"")
    return f"{path}?{query.decode('latin-1')}" if query else path


class RequestLogLayer:
    def __init__(self, app: ASGIApp, lg: Logger, request_start: bool = False) -> None:
        self.app = app
        self.lg = lg
        self.request_start = request_start

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        url = request_url(scope)
        client = scope.get("client")
        remote = client[0] if client else None
        if self.request_start:
            self.lg.debug(
                "request started", extra={"method": method, "url": url, "remote": remote}
            )

        status = 500
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            self.lg.error(
                "request failed",
                extra={
                    "method": method,
                    "url": url,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 3),
                    "err": e,
                },
            )
            raise

        self.lg.info(
            f"{method} {url} {status}",
            extra={
                "method": method,
                "url": url,
                "status": status,
                "duration_ms": round((time.perf_counter() - start) * 1000, 3),
                "remote": remote,
            },
        )


class RequestLog(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.log_name = self.str_option("logName", DEFAULT_LOG_NAME)
        self.request_start = self.bool_option("requestStart", False)

    def bind_to_router(self) -> None:
        if self.lg is None:
            raise AssertionError(f"'{self.name}' needs a logger")
        lg = self.lg.child(childName=self.log_name)
        self.router.use(RequestLogLayer, lg=lg, request_start=self.request_start)
