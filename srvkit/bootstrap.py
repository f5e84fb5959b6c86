"""
Process bootstrap.

An ``AppContext`` owns everything a server process needs: configuration,
the middleware registry, the logger factory and the two listeners.

    ctx = AppContext()
    ctx.init()
    ctx.install_fatal_handler()
    ctx.start_web()
    ctx.serve_forever()

Lifecycle hooks are configured as

    beforeStart.module = warmup
    beforeStart.method = run      (optional)

or, for a hook registered under a qualified name,

    beforeStart.module = myapp.hooks
    beforeStart.class = Warmup    (resolves "myapp.hooks.Warmup")

and resolved through the registry (``Registry.register_hook``).
"""

from __future__ import annotations

import asyncio
import inspect
import os
import signal
import sys
import threading
from collections.abc import Mapping
from types import FrameType, TracebackType
from typing import Any

from .config import ConfigStore, ConfigWatcher
from .config.snapshot import ConfigSnapshot
from .core.registry import Registry, descriptor_key
from .exceptions import ConfigError, HookError, SrvError
from .log import Logger, LoggerFactory
from .server.http import HTTPServer
from .server.https import HTTPSServer

FATAL_EXIT_CODE = 255
HOOK_FAILURE_EXIT_CODE = 1

BEFORE_START = "beforeStart"
AFTER_START = "afterStart"


class _ShutdownSignals:
    """Turns SIGTERM and SIGINT into KeyboardInterrupt so serve_forever unwinds."""

    def __init__(self) -> None:
        self._shutting_down = False
        self.signum: int | None = None
        self._original: dict[signal.Signals, Any] = {}

    def register(self) -> None:
        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original[sig] = signal.signal(sig, self._handle)

    def restore(self) -> None:
        for sig, handler in self._original.items():
            signal.signal(sig, handler)
        self._original.clear()

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        if self._shutting_down:
            return
        self._shutting_down = True
        self.signum = signum
        raise KeyboardInterrupt()


class AppContext:
    """
    Configuration, registry, loggers and listeners of one process.

    Args:
        config: Configuration store (default: located through CONF_DIR/CONF_FILE)
        registry: Middleware and hook registry (default: built-ins only)
    """

    def __init__(
        self, config: ConfigStore | None = None, registry: Registry | None = None
    ) -> None:
        self.config = config if config is not None else ConfigStore()
        self.registry = registry if registry is not None else Registry.with_builtins()
        self.log_factory = LoggerFactory()
        self.lg: Logger = self.log_factory.create()
        self.http = HTTPServer(self.config, self.registry, self.lg)
        self.https = HTTPSServer(self.config, self.registry, self.lg)
        self._initialized = False
        self._watcher: ConfigWatcher | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def servers(self) -> tuple[HTTPServer, HTTPSServer]:
        return self.http, self.https

    def init(self, force_reload: bool = True) -> None:
        """
        Load configuration and apply its ``logging`` section.

        Only the first call does anything.

        Raises:
            ConfigError: Configuration could not be loaded (cause attached)
            LoggingError: ``logging`` holds an unknown level or output mode
        """
        if self._initialized:
            return
        try:
            self.config.initialize(force_reload)
        except SrvError as e:
            raise ConfigError("Failed to initialize global config", cause=e) from e
        self._apply_logging(self.config.snapshot)
        self._initialized = True

    def _apply_logging(self, snapshot: ConfigSnapshot) -> None:
        self.log_factory.set_default_config(snapshot.get_path("logging"))
        self.lg = self.log_factory.create()
        for server in self.servers:
            server.set_logger(self.lg)

    def watch_config(self, debounce_ms: int = 500) -> ConfigWatcher:
        """Reload configuration on file changes, reapplying logging defaults."""
        if self._watcher is None:
            self._watcher = ConfigWatcher(
                self.config,
                self.lg.child(childName="config"),
                debounce_ms=debounce_ms,
                on_change=self._apply_logging,
            )
        self._watcher.start()
        return self._watcher

    def install_fatal_handler(self) -> None:
        """Log uncaught exceptions (any thread) at fatal level and exit."""
        sys.excepthook = self._excepthook
        threading.excepthook = self._thread_excepthook

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        self._fatal(exc)

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit or args.exc_value is None:
            return
        self._fatal(args.exc_value)

    def _fatal(self, exc: BaseException) -> None:
        self.lg.fatal("Uncaught exception", extra={"err": exc})
        for handler in self.lg.handlers:
            handler.flush()
        os._exit(FATAL_EXIT_CODE)

    def run_hook(self, name: str) -> bool:
        """
        Run the lifecycle hook configured under ``name``.

        Returns:
            True when a hook was configured and ran

        Raises:
            HookError: Hook could not be resolved, instantiated or executed
        """
        conf = self.config.get_value(name)
        if not isinstance(conf, Mapping) or not (conf.get("module") or conf.get("class")):
            return False
        method = conf.get("method")

        module = name
        try:
            module = descriptor_key(conf, name)
            instance = self.registry.resolve_hook(module)()
        except Exception as e:
            raise HookError(
                f"Failed to load and instantiate '{name}' hook", cause=e, module=module
            ) from e

        if not method:
            return True
        try:
            result = getattr(instance, str(method))()
            if inspect.isawaitable(result):
                asyncio.run(_await(result))
        except Exception as e:
            raise HookError(
                f"Failed to execute '{name}' hook", cause=e, module=module, method=method
            ) from e
        return True

    def start_web(self) -> None:
        """
        Run beforeStart, start both listeners, run afterStart.

        A listener that fails to start is logged and does not stop the
        other. Mistyped listener configuration (AssertionError) propagates.
        A failing hook terminates the process with exit code 1.
        """
        try:
            self.run_hook(BEFORE_START)
        except HookError as e:
            self.lg.error(e.message, extra={"err": e.cause})
            sys.exit(HOOK_FAILURE_EXIT_CODE)

        for server in self.servers:
            try:
                server.start()
            except SrvError as e:
                self.lg.error(f"Failed to start {server.label} server", extra={"err": e})

        try:
            self.run_hook(AFTER_START)
        except HookError as e:
            self.lg.error(e.message, extra={"err": e.cause})
            self.stop_web(HOOK_FAILURE_EXIT_CODE)

    def stop_servers(self) -> None:
        """Stop whichever listeners are running, logging failures."""
        for server in self.servers:
            if not server.is_running:
                continue
            try:
                server.stop()
            except SrvError as e:
                self.lg.error(f"Failed to stop {server.label} server", extra={"err": e})

    def stop_web(self, code: int = 0) -> None:
        """Stop the listeners and exit with ``code``."""
        self.stop_servers()
        if self._watcher is not None:
            self._watcher.stop()
        sys.exit(code)

    def serve_forever(self) -> None:
        """Block until SIGINT or SIGTERM, then stop and exit 0."""
        signals = _ShutdownSignals()
        signals.register()
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            self.lg.info("shutting down", extra={"signal": signals.signum})
        finally:
            signals.restore()
        self.stop_web(0)


async def _await(awaitable: Any) -> Any:
    return await awaitable
