"""
Tests for the HTTP and HTTPS listeners.

Tests marked integration bind real sockets on 127.0.0.1 (port 0).
"""

import shutil
import subprocess
from pathlib import Path

import httpx
import pytest
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from srvkit.config import ConfigStore
from srvkit.core.middleware import Middleware
from srvkit.exceptions import ServerError
from srvkit.server import HTTPServer, HTTPSServer, ServerState


async def ping(request: Request) -> PlainTextResponse:
    return PlainTextResponse("pong")


class Ping(Middleware):
    def bind_to_router(self) -> None:
        self.router.route("/ping", ping)


def _http_conf(**http) -> dict:
    return {
        "server": {
            "http": {"host": "127.0.0.1", **http},
            "router": {"modules": "Ping", "Ping": {}},
        }
    }


@pytest.fixture
def ping_registry(registry):
    registry.register("Ping", Ping)
    return registry


@pytest.fixture
def http_server(ping_registry, lg):
    """Factory for an HTTP server over a configuration mapping, stopped on teardown."""
    servers: list[HTTPServer] = []

    def make(data: dict) -> HTTPServer:
        server = HTTPServer(ConfigStore.from_mapping(data), ping_registry, lg)
        servers.append(server)
        return server

    yield make
    for server in servers:
        if server.is_running:
            server.stop()


@pytest.mark.unit
class TestServerConfiguration:
    def test_stop_when_not_running(self, http_server):
        server = http_server(_http_conf(port=0))
        with pytest.raises(ServerError, match="HTTP server was not running"):
            server.stop()

    def test_disabled(self, http_server, log_stream):
        server = http_server(_http_conf(disabled=True))
        server.start()
        assert server.state is ServerState.STOPPED
        assert (
            "INFO: HTTP server is disabled. To enable set 'server.http.disabled' to false"
            in log_stream.getvalue()
        )

    @pytest.mark.parametrize(
        "http,message",
        [
            ({"disabled": "yes", "port": 0}, "server.http.disabled"),
            ({}, "server.http.port"),
            ({"port": "8080"}, "server.http.port"),
            ({"port": True}, "server.http.port"),
            ({"port": 0, "basePath": 3}, "server.http.basePath"),
            ({"port": 0, "routerName": 1}, "server.http.routerName"),
        ],
    )
    def test_mistyped_options(self, http_server, http, message):
        server = http_server(_http_conf(**http))
        with pytest.raises(AssertionError, match=message):
            server.start()
        assert server.state is ServerState.STOPPED

    def test_router_failure(self, http_server):
        conf = _http_conf(port=0)
        conf["server"]["router"] = {"modules": "Missing"}
        server = http_server(conf)
        with pytest.raises(ServerError, match="Failed to create router") as exc_info:
            server.start()
        assert "Missing module 'Missing' configuration" in str(exc_info.value.cause)
        assert server.state is ServerState.STOPPED

    def test_https_missing_key(self, in_temp_dir: Path, ping_registry, lg):
        conf = {
            "server": {
                "https": {"port": 0, "sslKey": "key.pem", "sslCert": "cert.pem"},
                "router": {"modules": "Ping", "Ping": {}},
            }
        }
        server = HTTPSServer(ConfigStore.from_mapping(conf), ping_registry, lg)
        with pytest.raises(ServerError, match="Failed to read key file key.pem"):
            server.start()
        assert server.state is ServerState.STOPPED

    def test_https_mistyped_key(self, ping_registry, lg):
        conf = {"server": {"https": {"port": 0, "sslKey": 1}, "router": {}}}
        server = HTTPSServer(ConfigStore.from_mapping(conf), ping_registry, lg)
        with pytest.raises(AssertionError, match="server.https.sslKey"):
            server.start()


@pytest.mark.integration
class TestServerLifecycle:
    def test_start_serve_stop(self, http_server, log_stream):
        server = http_server(_http_conf(port=0))
        server.start()
        assert server.is_running
        assert server.port

        response = httpx.get(f"http://127.0.0.1:{server.port}/ping")
        assert response.text == "pong"
        assert httpx.get(f"http://127.0.0.1:{server.port}/nope").status_code == 404
        assert (
            f"HTTP server has been started on http://localhost:{server.port}/"
            in log_stream.getvalue()
        )

        server.stop()
        assert server.state is ServerState.STOPPED
        assert server.port is None
        assert "HTTP server has been stopped" in log_stream.getvalue()
        with pytest.raises(ServerError, match="was not running"):
            server.stop()

    def test_second_start_is_noop(self, http_server):
        server = http_server(_http_conf(port=0))
        server.start()
        port = server.port
        app = server.app
        server.start()
        assert server.port == port
        assert server.app is app

    def test_restart(self, http_server):
        server = http_server(_http_conf(port=0))
        server.start()
        server.stop()
        server.start()
        assert httpx.get(f"http://127.0.0.1:{server.port}/ping").text == "pong"

    def test_base_path(self, http_server):
        server = http_server(_http_conf(port=0, basePath="/api"))
        server.start()
        base = f"http://127.0.0.1:{server.port}"
        assert httpx.get(f"{base}/api/ping").text == "pong"
        assert httpx.get(f"{base}/ping").status_code == 404

    def test_named_router(self, http_server):
        conf = _http_conf(port=0, routerName="public")
        conf["server"]["router"] = {"public": {"modules": "Ping"}, "Ping": {}}
        server = http_server(conf)
        server.start()
        assert httpx.get(f"http://127.0.0.1:{server.port}/ping").text == "pong"

    def test_port_in_use(self, http_server):
        first = http_server(_http_conf(port=0))
        first.start()
        second = http_server(_http_conf(port=first.port))
        with pytest.raises(ServerError, match="Failed to bind HTTP server"):
            second.start()
        assert second.state is ServerState.STOPPED


@pytest.fixture
def tls_files(in_temp_dir: Path) -> Path:
    """Self-signed key and certificate (key.pem, cert.pem) in the working directory."""
    openssl = shutil.which("openssl")
    if openssl is None:
        pytest.skip("openssl not available")
    subprocess.run(
        [
            openssl, "req", "-x509", "-newkey", "rsa:2048", "-nodes",
            "-keyout", "key.pem", "-out", "cert.pem",
            "-days", "1", "-subj", "/CN=localhost",
        ],
        cwd=in_temp_dir,
        check=True,
        capture_output=True,
    )
    return in_temp_dir


@pytest.mark.integration
class TestHTTPSLifecycle:
    def test_start_serve_stop(self, tls_files: Path, ping_registry, lg, log_stream):
        conf = {
            "server": {
                "https": {
                    "host": "127.0.0.1",
                    "port": 0,
                    "sslKey": "key.pem",
                    "sslCert": "cert.pem",
                },
                "router": {"modules": "Ping", "Ping": {}},
            }
        }
        server = HTTPSServer(ConfigStore.from_mapping(conf), ping_registry, lg)
        server.start()
        try:
            assert server.is_running
            base = f"https://127.0.0.1:{server.port}"
            assert httpx.get(f"{base}/ping", verify=False).text == "pong"
            assert httpx.get(f"{base}/missing", verify=False).status_code == 404
            assert (
                f"HTTPS server has been started on https://localhost:{server.port}/"
                in log_stream.getvalue()
            )

            port = server.port
            server.start()
            assert server.port == port
        finally:
            server.stop()
        assert server.state is ServerState.STOPPED
        assert "HTTPS server has been stopped" in log_stream.getvalue()
