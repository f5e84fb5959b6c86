"""
Tests for the JSON, XML and Form body parsers.
"""

import json

import pytest
from starlette.requests import Request
from starlette.responses import JSONResponse

from srvkit.exceptions import AssemblyError
from srvkit.server.middleware.body import parse_extended


async def echo(request: Request) -> JSONResponse:
    raw = getattr(request.state, "raw_body", None)
    replayed = await request.body()
    return JSONResponse(
        {
            "body": getattr(request.state, "body", None),
            "raw": raw.decode() if raw is not None else None,
            "replayed": replayed.decode(),
        }
    )


def _echo_routes(app, router):
    router.route("/echo", echo, methods=["POST"])


def _conf(module: str, **options) -> dict:
    return {"server": {"router": {"modules": [module], module: options}}}


@pytest.mark.unit
class TestJSON:
    def test_parses_body(self, assemble):
        _, _, client = assemble(_conf("JSON"), setup=_echo_routes)
        data = client.post("/echo", json={"name": "ada", "tags": [1, 2]}).json()
        assert data["body"] == {"name": "ada", "tags": [1, 2]}
        assert data["raw"] is None
        assert json.loads(data["replayed"]) == data["body"]

    def test_vendor_type(self, assemble):
        _, _, client = assemble(_conf("JSON"), setup=_echo_routes)
        response = client.post(
            "/echo", content=b'{"a": 1}', headers={"content-type": "application/vnd.api+json"}
        )
        assert response.json()["body"] == {"a": 1}

    def test_other_content_types_untouched(self, assemble):
        _, _, client = assemble(_conf("JSON"), setup=_echo_routes)
        response = client.post("/echo", content=b"plain", headers={"content-type": "text/plain"})
        assert response.json()["body"] is None
        assert response.json()["replayed"] == "plain"

    def test_empty_body(self, assemble):
        _, _, client = assemble(_conf("JSON"), setup=_echo_routes)
        response = client.post("/echo", content=b"", headers={"content-type": "application/json"})
        assert response.json()["body"] == {}

    def test_malformed(self, assemble):
        _, _, client = assemble(_conf("JSON"), setup=_echo_routes)
        response = client.post("/echo", content=b"{nope", headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_limit(self, assemble):
        _, _, client = assemble(_conf("JSON", limit="10b"), setup=_echo_routes)
        response = client.post("/echo", json={"long": "x" * 50})
        assert response.status_code == 413

    def test_raw_body(self, assemble):
        _, _, client = assemble(_conf("JSON", rawBody=True), setup=_echo_routes)
        data = client.post("/echo", content=b'{"a":1}', headers={"content-type": "application/json"}).json()
        assert data["raw"] == '{"a":1}'

    def test_invalid_limit(self, assemble):
        with pytest.raises(AssemblyError):
            assemble(_conf("JSON", limit="huge"))


@pytest.mark.unit
class TestXML:
    def test_parses_body(self, assemble):
        _, _, client = assemble(_conf("XML"), setup=_echo_routes)
        response = client.post(
            "/echo",
            content=b"<order><item>a</item><item>b</item></order>",
            headers={"content-type": "application/xml"},
        )
        assert response.json()["body"] == {"item": ["a", "b"]}

    def test_malformed(self, assemble):
        _, _, client = assemble(_conf("XML"), setup=_echo_routes)
        response = client.post("/echo", content=b"<a><b></a>", headers={"content-type": "text/xml"})
        assert response.status_code == 400


@pytest.mark.unit
class TestForm:
    def test_parses_body(self, assemble):
        _, _, client = assemble(_conf("Form"), setup=_echo_routes)
        response = client.post(
            "/echo",
            content=b"user[name]=ada&user[role]=admin&tags[]=a&tags[]=b&empty=",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )
        assert response.json()["body"] == {
            "user": {"name": "ada", "role": "admin"},
            "tags": ["a", "b"],
            "empty": "",
        }

    def test_first_parser_wins(self, assemble):
        conf = {
            "server": {
                "router": {"modules": ["Form", "JSON"], "Form": {}, "JSON": {}}
            }
        }
        _, _, client = assemble(conf, setup=_echo_routes)
        response = client.post("/echo", data={"a": "1"})
        assert response.json()["body"] == {"a": "1"}


@pytest.mark.unit
class TestParseExtended:
    def test_repeated_plain_keys(self):
        assert parse_extended([("a", "1"), ("a", "2")]) == {"a": ["1", "2"]}

    def test_nested(self):
        assert parse_extended([("a[b][c]", "x")]) == {"a": {"b": {"c": "x"}}}

    def test_unbalanced_brackets_stay_literal(self):
        assert parse_extended([("a[b", "x")]) == {"a[b": "x"}
