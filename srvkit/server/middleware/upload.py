"""
Multipart uploads stored on disk.

    server.router.Upload.dir = uploads

Files of a ``multipart/form-data`` request are written to
``<cwd>/<dir>`` under random names. Handlers find them as
``request.state.files`` and the plain fields as ``request.state.body``.
A malformed upload does not fail the request; the error is left in
``request.state.error`` for the handler to deal with.
"""

from __future__ import annotations

import secrets
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ...core.middleware import Middleware
from .body import _media_type, parse_extended

if TYPE_CHECKING:
    from starlette.datastructures import Headers

    from ...log import Logger

MULTIPART = "multipart/form-data"


def _store(upload: UploadFile, fieldname: str, destination: Path) -> dict[str, Any]:
    """Copy an upload to disk (blocking); a partial file is removed on failure."""
    filename = secrets.token_hex(16)
    path = destination / filename
    upload.file.seek(0)
    try:
        with open(path, "wb") as out:
            shutil.copyfileobj(upload.file, out)
    except OSError:
        path.unlink(missing_ok=True)
        raise
    return {
        "fieldname": fieldname,
        "originalname": upload.filename or "",
        "mimetype": upload.content_type or "application/octet-stream",
        "destination": str(destination),
        "filename": filename,
        "path": str(path),
        "size": path.stat().st_size,
    }


class UploadLayer:
    def __init__(self, app: ASGIApp, destination: Path, lg: Logger | None = None) -> None:
        self.app = app
        self.destination = destination
        self.lg = lg

    def _accepts(self, headers: Headers) -> bool:
        media_type, _ = _media_type(headers)
        return media_type == MULTIPART

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        request = Request(scope, receive)
        if not self._accepts(request.headers):
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        files: list[dict[str, Any]] = []
        fields: list[tuple[str, str]] = []
        try:
            await run_in_threadpool(self.destination.mkdir, parents=True, exist_ok=True)
            async with request.form() as form:
                for name, value in form.multi_items():
                    if isinstance(value, UploadFile):
                        files.append(
                            await run_in_threadpool(_store, value, name, self.destination)
                        )
                    else:
                        fields.append((name, value))
        except (HTTPException, MultiPartException, OSError) as e:
            if self.lg is not None:
                self.lg.warning("upload failed", extra={"err": e})
            state["error"] = e

        state["files"] = files
        state.setdefault("body", parse_extended(fields))

        async def drained() -> Message:
            return {"type": "http.request", "body": b"", "more_body": False}

        await self.app(scope, drained, send)


class Upload(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.dir = self.str_option("dir")

    def bind_to_router(self) -> None:
        self.router.use(UploadLayer, destination=Path.cwd() / self.dir, lg=self.lg)
