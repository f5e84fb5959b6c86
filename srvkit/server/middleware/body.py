"""
Request body parsers.

    server.router.JSON.limit = 100kb
    server.router.JSON.rawBody = false
    server.router.XML.limit = 1mb
    server.router.Form.rawBody = true

Each parser only touches requests with its content type. The parsed
body is stored as ``request.state.body`` (and the bytes as
``request.state.raw_body`` with ``rawBody``); the body is replayed to
later handlers. Oversized bodies get 413, malformed ones 400.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import parse_qsl

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ...core.middleware import Middleware
from ...util.size import InvalidSizeError, size_str, size_to_bytes
from ...util.xml import parse_xml

DEFAULT_LIMIT = "100kb"
FORM_PARAMETER_LIMIT = 1000

_BRACKETS = re.compile(r"\[([^\[\]]*)\]")


class BodyParseError(ValueError):
    """The body does not parse as its declared content type."""

    pass


class PayloadTooLarge(Exception):
    pass


def parse_json(raw: bytes, charset: str) -> Any:
    if not raw.strip():
        return {}
    try:
        return json.loads(raw.decode(charset))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BodyParseError(str(e)) from e


def parse_xml_body(raw: bytes, charset: str) -> Any:
    if not raw.strip():
        return {}
    try:
        return parse_xml(raw)
    except ET.ParseError as e:
        raise BodyParseError(str(e)) from e


def _split_key(key: str) -> list[str]:
    head, bracket, rest = key.partition("[")
    if not bracket or not head or not rest.endswith("]"):
        return [key]
    return [head, *_BRACKETS.findall(bracket + rest)]


def _merge(node: dict[str, Any], key: str, value: str) -> None:
    existing = node.get(key)
    if existing is None or isinstance(existing, dict):
        node[key] = value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        node[key] = [existing, value]


def parse_extended(pairs: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """
    Build nested data from bracketed field names.

    Examples:
        >>> parse_extended([("user[name]", "ada"), ("tags[]", "a"), ("tags[]", "b")])
        {'user': {'name': 'ada'}, 'tags': ['a', 'b']}
    """
    result: dict[str, Any] = {}
    for key, value in pairs:
        parts = _split_key(key)
        append = len(parts) > 1 and parts[-1] == ""
        if append:
            parts = parts[:-1]
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        if append:
            current = node.get(leaf)
            if isinstance(current, list):
                current.append(value)
            elif current is None or isinstance(current, dict):
                node[leaf] = [value]
            else:
                node[leaf] = [current, value]
        else:
            _merge(node, leaf, value)
    return result


def parse_form(raw: bytes, charset: str) -> Any:
    try:
        pairs = parse_qsl(
            raw.decode(charset),
            keep_blank_values=True,
            strict_parsing=False,
            max_num_fields=FORM_PARAMETER_LIMIT,
        )
    except (UnicodeDecodeError, ValueError) as e:
        raise BodyParseError(str(e)) from e
    return parse_extended(pairs)


def _media_type(headers: Headers) -> tuple[str, str]:
    content_type = headers.get("content-type", "")
    media_type, _, params = content_type.partition(";")
    charset = "utf-8"
    for param in params.split(";"):
        name, _, value = param.strip().partition("=")
        if name.lower() == "charset" and value:
            charset = value.strip('"')
    return media_type.strip().lower(), charset


class BodyParserLayer:
    """ASGI middleware buffering and parsing one kind of request body."""

    def __init__(
        self,
        app: ASGIApp,
        accepts: Callable[[str], bool],
        parse: Callable[[bytes, str], Any],
        limit: int,
        raw_body: bool = False,
    ) -> None:
        self.app = app
        self.accepts = accepts
        self.parse = parse
        self.limit = limit
        self.raw_body = raw_body

    async def _read(self, headers: Headers, receive: Receive) -> bytes | None:
        """Whole body, None if the client went away."""
        declared = headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.limit:
            raise PayloadTooLarge()
        chunks: list[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                return None
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.limit:
                raise PayloadTooLarge()
            chunks.append(chunk)
            if not message.get("more_body", False):
                return b"".join(chunks)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        headers = Headers(scope=scope)
        media_type, charset = _media_type(headers)
        state = scope.setdefault("state", {})
        if not self.accepts(media_type) or "body" in state:
            await self.app(scope, receive, send)
            return

        try:
            raw = await self._read(headers, receive)
        except PayloadTooLarge:
            response = PlainTextResponse(
                f"Payload Too Large (limit {size_str(self.limit)})", status_code=413
            )
            await response(scope, receive, send)
            return
        if raw is None:
            return

        try:
            state["body"] = self.parse(raw, charset)
        except (BodyParseError, LookupError) as e:
            await PlainTextResponse(f"Bad Request: {e}", status_code=400)(
                scope, receive, send
            )
            return
        if self.raw_body:
            state["raw_body"] = raw

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": raw, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)


class _BodyParser(Middleware):
    """Configuration shared by the body parser modules."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        limit = self.option("limit", DEFAULT_LIMIT)
        if not isinstance(limit, (str, int)) or isinstance(limit, bool):
            raise AssertionError(f"'{self.config_path}.limit' must be a size")
        try:
            self.limit = size_to_bytes(limit)
        except InvalidSizeError as e:
            raise AssertionError(f"'{self.config_path}.limit' must be a size: {e}") from e
        self.raw_body = self.bool_option("rawBody", False)

    def accepts(self, media_type: str) -> bool:
        raise NotImplementedError

    def parse(self, raw: bytes, charset: str) -> Any:
        raise NotImplementedError

    def bind_to_router(self) -> None:
        self.router.use(
            BodyParserLayer,
            accepts=self.accepts,
            parse=self.parse,
            limit=self.limit,
            raw_body=self.raw_body,
        )


class JSONParser(_BodyParser):
    def accepts(self, media_type: str) -> bool:
        return media_type == "application/json" or media_type.endswith("+json")

    def parse(self, raw: bytes, charset: str) -> Any:
        return parse_json(raw, charset)


class XMLParser(_BodyParser):
    def accepts(self, media_type: str) -> bool:
        return media_type in ("text/xml", "application/xml") or media_type.endswith(
            "+xml"
        )

    def parse(self, raw: bytes, charset: str) -> Any:
        return parse_xml_body(raw, charset)


class FormParser(_BodyParser):
    def accepts(self, media_type: str) -> bool:
        return media_type == "application/x-www-form-urlencoded"

    def parse(self, raw: bytes, charset: str) -> Any:
        return parse_form(raw, charset)
