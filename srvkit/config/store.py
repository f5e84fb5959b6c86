"""
Configuration store.

Loads the configuration source once and serves dotted-path lookups from
an immutable snapshot. A reload swaps the whole snapshot or nothing.
"""

import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigError
from .constants import (
    CONF_DIR_ENV,
    CONF_FILE_ENV,
    DEFAULT_CONF_DIRNAME,
    DEFAULT_CONF_FILENAME,
    YAML_SUFFIXES,
)
from .properties import PropertiesLoader
from .snapshot import ConfigSnapshot
from .yaml_source import load_yaml


def resolve_config_path(
    conf_dir: str | Path | None = None,
    conf_file: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """
    Work out which file to load.

    Explicit arguments win over the CONF_DIR / CONF_FILE environment
    variables, which win over ``<cwd>/conf/config.properties``.
    """
    env = os.environ if environ is None else environ
    directory = conf_dir or env.get(CONF_DIR_ENV) or Path.cwd() / DEFAULT_CONF_DIRNAME
    filename = conf_file or env.get(CONF_FILE_ENV) or DEFAULT_CONF_FILENAME
    return Path(directory) / filename


def load_source(path: Path) -> tuple[dict[str, Any], list[Path]]:
    """Parse a configuration file, returning the data and every file read."""
    if path.suffix.lower() in YAML_SUFFIXES:
        return load_yaml(path), [path.resolve()]
    loader = PropertiesLoader()
    data = loader.load(path)
    return data, list(loader.source_files)


class ConfigStore:
    """
    Process configuration.

    Example:
        store = ConfigStore()
        store.initialize()
        modules = store.get_value("server.router.modules")
    """

    def __init__(
        self,
        conf_dir: str | Path | None = None,
        conf_file: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._conf_dir = conf_dir
        self._conf_file = conf_file
        self._environ = environ
        self._lock = threading.RLock()
        self._snapshot = ConfigSnapshot()
        self._source_files: list[Path] = []
        self._loaded = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConfigStore":
        """Create an already-initialized store over in-memory data."""
        store = cls()
        store._snapshot = ConfigSnapshot(data)
        store._loaded = True
        return store

    @property
    def path(self) -> Path:
        return resolve_config_path(self._conf_dir, self._conf_file, self._environ)

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def snapshot(self) -> ConfigSnapshot:
        return self._snapshot

    @property
    def source_files(self) -> list[Path]:
        return list(self._source_files)

    def initialize(self, force_reload: bool = False) -> ConfigSnapshot:
        """
        Load the configuration source.

        Loads only once unless ``force_reload`` is set. On failure the
        previous snapshot stays in place.

        Raises:
            ConfigError: File unreadable or malformed (the cause is attached)
        """
        with self._lock:
            if self._loaded and not force_reload:
                return self._snapshot
            path = self.path
            try:
                data, sources = load_source(path)
            except (OSError, UnicodeDecodeError, yaml.YAMLError, ConfigError) as e:
                raise ConfigError(
                    f"Failed to read configuration file: {path}", cause=e
                ) from e
            self._snapshot = ConfigSnapshot(data)
            self._source_files = sources
            self._loaded = True
            return self._snapshot

    def get_value(self, path: str) -> Any:
        """Value at a dotted path, or None when any segment is absent."""
        return self._snapshot.get_path(path)

    def has_value(self, path: str) -> bool:
        return self._snapshot.has_path(path)
