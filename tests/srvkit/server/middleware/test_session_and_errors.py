"""
Tests for the Session and ServerError modules.
"""

import pytest
from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from srvkit.exceptions import AssemblyError, ServerError
from srvkit.log.serializers import err_serializer
from srvkit.server.middleware import Session
from srvkit.server.middleware.session import max_age_seconds
from srvkit.server.router import Router


async def store_error(request: Request) -> PlainTextResponse:
    err = ServerError("Checkout failed", cause=ValueError("card declined"))
    request.session["error"] = err_serializer(err)
    return PlainTextResponse("stored")


async def counter(request: Request) -> PlainTextResponse:
    request.session["n"] = request.session.get("n", 0) + 1
    return PlainTextResponse(str(request.session["n"]))


def _with_routes(app, router):
    router.route("/fail", store_error)
    router.route("/count", counter)


@pytest.mark.unit
class TestSession:
    def test_session_persists_between_requests(self, assemble):
        _, _, client = assemble(
            {"server": {"router": {"modules": ["Session"], "Session": {"secret": "s"}}}},
            setup=_with_routes,
        )
        assert client.get("/count").text == "1"
        assert client.get("/count").text == "2"
        assert "srv.sid" in client.cookies

    def test_cookie_name_and_max_age(self, assemble):
        conf = {"secret": "s", "cookieName": "app.sid", "maxAge": 60000}
        _, _, client = assemble(
            {"server": {"router": {"modules": ["Session"], "Session": conf}}},
            setup=_with_routes,
        )
        response = client.get("/count")
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("app.sid=")
        assert "Max-Age=60;" in cookie

    @pytest.mark.parametrize(
        "max_age_ms,seconds", [(None, None), (0, None), (1, 1), (1500, 2), (3600000, 3600)]
    )
    def test_max_age_is_milliseconds(self, max_age_ms, seconds):
        assert max_age_seconds(max_age_ms) == seconds

    @pytest.mark.parametrize(
        "conf",
        [{}, {"secret": 5}, {"secret": "s", "maxAge": "soon"}, {"secret": "s", "maxAge": -1}],
    )
    def test_invalid_configuration(self, conf, lg):
        with pytest.raises(AssertionError):
            Session(FastAPI(), Router(), conf, lg, "Session")


@pytest.mark.unit
class TestServerErrorPage:
    CONF = {
        "server": {
            "router": {
                "modules": ["Session", "ServerError"],
                "Session": {"secret": "s"},
                "ServerError": {"errorPage": "/error"},
            }
        }
    }

    def test_renders_stored_error_once(self, assemble):
        _, _, client = assemble(self.CONF, setup=_with_routes)
        client.get("/fail")
        response = client.get("/error")
        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/html")
        assert "ServerError: Checkout failed" in response.text
        assert "<h2>Caused by:</h2>" in response.text
        assert "ValueError: card declined" in response.text

        again = client.get("/error")
        assert again.status_code == 500
        assert "<h1>Error</h1>" in again.text

    def test_any_method(self, assemble):
        _, _, client = assemble(self.CONF)
        assert client.post("/error").status_code == 500
        assert client.delete("/error").status_code == 500

    def test_without_session(self, assemble):
        _, _, client = assemble(
            {"server": {"router": {"modules": "ServerError", "ServerError": {"errorPage": "/oops"}}}}
        )
        response = client.get("/oops")
        assert response.status_code == 500
        assert "<h1>Error</h1>" in response.text

    def test_error_page_required(self, assemble):
        with pytest.raises(AssemblyError):
            assemble({"server": {"router": {"modules": "ServerError", "ServerError": {}}}})
