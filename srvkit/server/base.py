"""
Listener bootstrap shared by the HTTP and HTTPS servers.

Each server reads its ``server.<section>`` configuration, assembles its
own router, mounts it on a fresh FastAPI application under ``basePath``
and serves it with uvicorn on a background thread.
"""

from __future__ import annotations

import socket
import threading
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import FastAPI

from ..exceptions import AssemblyError, ServerError
from .router import Router, RouterAssembler

if TYPE_CHECKING:
    from ..config import ConfigStore
    from ..core.registry import Registry
    from ..log import Logger


class ServerState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


def _uvicorn_log_config(level: str = "warning") -> dict[str, Any]:
    """Keep uvicorn's own loggers quiet; requests are logged by RequestLog."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {},
        "loggers": {
            "uvicorn": {"level": level.upper()},
            "uvicorn.access": {"level": "WARNING"},
            "uvicorn.error": {"level": level.upper()},
        },
    }


class WebServer:
    """
    One listener and its router.

    start() and stop() are serialized by a lock; start() while the server
    is not stopped is a no-op.
    """

    section = "http"
    label = "HTTP"
    scheme = "http"

    DEFAULT_HOST = "0.0.0.0"
    START_TIMEOUT_SECS = 10.0
    STOP_TIMEOUT_SECS = 10.0

    def __init__(self, config: ConfigStore, registry: Registry, lg: Logger) -> None:
        self._config = config
        self._registry = registry
        self._lg = lg.child(server=self.section)
        self._lock = threading.Lock()
        self._state = ServerState.STOPPED
        self._app: FastAPI | None = None
        self._router: Router | None = None
        self._server: uvicorn.Server | None = None
        self._socket: socket.socket | None = None
        self._thread: threading.Thread | None = None

    def set_logger(self, lg: Logger) -> None:
        """Log through ``lg`` from now on (e.g. after logging was reconfigured)."""
        self._lg = lg.child(server=self.section)

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ServerState.RUNNING

    @property
    def app(self) -> FastAPI | None:
        return self._app

    @property
    def router(self) -> Router | None:
        return self._router

    @property
    def port(self) -> int | None:
        """Port actually bound (differs from configuration for port 0)."""
        if self._socket is None:
            return None
        return int(self._socket.getsockname()[1])

    def _get(self, key: str, default: Any = None) -> Any:
        value = self._config.get_value(f"server.{self.section}.{key}")
        return default if value is None else value

    def _key(self, key: str) -> str:
        return f"server.{self.section}.{key}"

    def _ssl_options(self) -> dict[str, Any]:
        """uvicorn TLS keyword arguments; plain HTTP has none."""
        return {}

    def _create_app(self) -> FastAPI:
        return FastAPI(
            title=f"srvkit {self.section}",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

    def start(self) -> None:
        """
        Start the listener.

        Raises:
            AssertionError: ``disabled``, ``port`` or ``basePath`` mistyped
            ServerError: Router assembly, TLS files or socket bind failed
        """
        with self._lock:
            if self._state is not ServerState.STOPPED:
                self._lg.debug(f"{self.label} server is already {self._state.value}")
                return

            disabled = self._get("disabled", False)
            if not isinstance(disabled, bool):
                raise AssertionError(f"'{self._key('disabled')}' must be a boolean")
            if disabled:
                self._lg.info(
                    f"{self.label} server is disabled. "
                    f"To enable set '{self._key('disabled')}' to false"
                )
                return

            port = self._get("port")
            if not isinstance(port, int) or isinstance(port, bool):
                raise AssertionError(f"'{self._key('port')}' must be an integer")
            base_path = self._get("basePath", "/")
            if not isinstance(base_path, str):
                raise AssertionError(f"'{self._key('basePath')}' must be a string")
            router_name = self._get("routerName")
            if router_name is not None and not isinstance(router_name, str):
                raise AssertionError(f"'{self._key('routerName')}' must be a string")

            self._state = ServerState.STARTING
            try:
                self._start(port, base_path, router_name)
            except BaseException:
                self._state = ServerState.STOPPED
                raise
            self._state = ServerState.RUNNING

        self._lg.info(
            f"{self.label} server has been started on "
            f"{self.scheme}://localhost:{self.port}{base_path}"
        )

    def _start(self, port: int, base_path: str, router_name: str | None) -> None:
        app = self._create_app()
        assembler = RouterAssembler(self._config, self._registry, self._lg)
        try:
            router = assembler.build(router_name, app)
        except AssemblyError as e:
            raise ServerError("Failed to create router", cause=e) from e
        app.mount(base_path, router.build())

        ssl_options = self._ssl_options()
        sock = self._bind(port)
        try:
            server = self._serve(app, sock, ssl_options)
        except BaseException:
            sock.close()
            raise

        self._app = app
        self._router = router
        self._socket = sock
        self._server = server

    def _bind(self, port: int) -> socket.socket:
        host = self._get("host", self.DEFAULT_HOST)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            raise ServerError(
                f"Failed to bind {self.label} server", cause=e, host=host, port=port
            ) from e
        return sock

    def _serve(
        self, app: FastAPI, sock: socket.socket, ssl_options: dict[str, Any]
    ) -> uvicorn.Server:
        config = uvicorn.Config(
            app,
            log_config=_uvicorn_log_config(),
            access_log=False,
            **ssl_options,
        )
        try:
            config.load()
        except (OSError, ValueError) as e:
            raise ServerError(
                f"Failed to configure {self.label} server", cause=e
            ) from e

        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={"sockets": [sock]},
            name=f"srvkit-{self.section}",
            daemon=True,
        )
        thread.start()

        deadline = time.monotonic() + self.START_TIMEOUT_SECS
        while not server.started:
            if not thread.is_alive():
                raise ServerError(f"{self.label} server exited during startup")
            if time.monotonic() > deadline:
                server.should_exit = True
                thread.join(timeout=self.STOP_TIMEOUT_SECS)
                raise ServerError(f"{self.label} server did not start in time")
            time.sleep(0.01)

        self._thread = thread
        return server

    def stop(self) -> None:
        """
        Stop the listener.

        Raises:
            ServerError: Not running, or the listener did not shut down
        """
        with self._lock:
            if self._state is not ServerState.RUNNING:
                raise ServerError(f"{self.label} server was not running")
            self._state = ServerState.STOPPING
            try:
                self._shutdown()
            except ServerError:
                self._state = ServerState.RUNNING
                raise
            self._app = None
            self._router = None
            self._server = None
            self._socket = None
            self._thread = None
            self._state = ServerState.STOPPED

        self._lg.info(f"{self.label} server has been stopped")

    def _shutdown(self) -> None:
        assert self._server is not None and self._thread is not None
        self._server.should_exit = True
        self._thread.join(timeout=self.STOP_TIMEOUT_SECS)
        if self._thread.is_alive():
            raise ServerError(
                f"Error occured while stopping {self.label} server",
                cause=TimeoutError(
                    f"listener still running after {self.STOP_TIMEOUT_SECS}s"
                ),
            )
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError as e:
                raise ServerError(
                    f"Error occured while stopping {self.label} server", cause=e
                ) from e
