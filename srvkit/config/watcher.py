"""
File-based configuration watcher for hot-reload.

Monitors the configuration file (and every file it includes) with
watchdog and reloads the owning ConfigStore when one of them changes.
"""

from __future__ import annotations

import hashlib
import json
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .snapshot import ConfigSnapshot

if TYPE_CHECKING:
    from ..log import Logger
    from .store import ConfigStore


class _ConfigFileHandler(FileSystemEventHandler):
    def __init__(self, watcher: ConfigWatcher) -> None:
        self._watcher = watcher

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch_path(event)

    def _dispatch_path(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = Path(str(event.src_path)).resolve()
        if self._watcher.is_watched_file(path):
            self._watcher.on_file_changed()


class ConfigWatcher:
    """
    Reloads a ConfigStore when its source files change.

    Uses a trailing-edge debounce: a reload happens once no new event has
    arrived for ``debounce_ms``. A reload that fails keeps the previous
    snapshot and is logged.

    Example:
        >>> watcher = ConfigWatcher(store, lg, on_change=apply_logging)
        >>> watcher.start()
        >>> watcher.stop()
    """

    def __init__(
        self,
        store: ConfigStore,
        lg: Logger,
        debounce_ms: int = 500,
        on_change: Callable[[ConfigSnapshot], None] | None = None,
    ) -> None:
        self._store = store
        self._lg = lg
        self._debounce_ms = debounce_ms
        self._on_change = on_change
        self._observer: Any = None
        self._debounce_timer: threading.Timer | None = None
        self._lock = threading.RLock()
        self._running = False
        self._watched_files: set[Path] = set()
        self._last_hash: str | None = None

    def is_watched_file(self, path: Path) -> bool:
        with self._lock:
            return path in self._watched_files

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def _source_files(self) -> set[Path]:
        files = {p.resolve() for p in self._store.source_files}
        return files or {self._store.path.resolve()}

    def start(self) -> None:
        """Start watching the directories holding the source files."""
        with self._lock:
            if self._running:
                return
            self._watched_files = self._source_files()
            self._last_hash = self._hash(self._store.snapshot)
            self._observer = Observer()
            handler = _ConfigFileHandler(self)
            for directory in {f.parent for f in self._watched_files}:
                self._observer.schedule(handler, str(directory), recursive=False)
            self._observer.start()
            self._running = True
            self._lg.debug(
                "watching configuration",
                extra={"files": sorted(str(f) for f in self._watched_files)},
            )

    def stop(self) -> None:
        with self._lock:
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
                self._debounce_timer = None
            if self._observer is not None:
                self._observer.stop()
                self._observer.join(timeout=2.0)
                self._observer = None
            self._running = False
            self._watched_files = set()

    def on_file_changed(self) -> None:
        """Schedule a reload, restarting the debounce timer."""
        with self._lock:
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
            self._debounce_timer = threading.Timer(
                self._debounce_ms / 1000.0, self.reload
            )
            self._debounce_timer.daemon = True
            self._debounce_timer.start()

    @staticmethod
    def _hash(snapshot: ConfigSnapshot) -> str:
        serialized = json.dumps(snapshot.to_dict(), sort_keys=True, default=str)
        return hashlib.md5(serialized.encode(), usedforsecurity=False).hexdigest()

    def reload(self) -> bool:
        """
        Reload the store now.

        Returns:
            True when the configuration changed and listeners were notified
        """
        try:
            snapshot = self._store.initialize(force_reload=True)
        except Exception as e:
            self._lg.error(
                "failed to reload config, keeping previous config", extra={"err": e}
            )
            return False

        new_hash = self._hash(snapshot)
        with self._lock:
            if new_hash == self._last_hash:
                self._lg.debug("config file touched but content unchanged, skipping")
                return False
            self._last_hash = new_hash
            if self._running:
                self._watched_files = self._source_files()

        self._lg.info("configuration reloaded")
        if self._on_change is not None:
            try:
                self._on_change(snapshot)
            except Exception as e:
                self._lg.error("on_change callback failed", extra={"err": e})
        return True
