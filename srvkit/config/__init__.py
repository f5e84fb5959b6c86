"""
Configuration loading.

Properties (or YAML) files are parsed into an immutable snapshot held by
a ``ConfigStore``; values are looked up by dotted path.
"""

from .constants import (
    CONF_DIR_ENV,
    CONF_FILE_ENV,
    DEFAULT_CONF_DIRNAME,
    DEFAULT_CONF_FILENAME,
    MAX_CONFIG_SIZE_BYTES,
    MAX_INCLUDE_DEPTH,
)
from .properties import (
    PropertiesLoader,
    convert_value,
    load_properties,
    parse_properties,
    split_multi_value,
)
from .snapshot import ConfigSnapshot
from .store import ConfigStore, load_source, resolve_config_path
from .watcher import ConfigWatcher
from .yaml_source import load_yaml

__all__ = [
    "ConfigStore",
    "ConfigSnapshot",
    "ConfigWatcher",
    "PropertiesLoader",
    "parse_properties",
    "load_properties",
    "load_yaml",
    "load_source",
    "resolve_config_path",
    "convert_value",
    "split_multi_value",
    "CONF_DIR_ENV",
    "CONF_FILE_ENV",
    "DEFAULT_CONF_DIRNAME",
    "DEFAULT_CONF_FILENAME",
    "MAX_CONFIG_SIZE_BYTES",
    "MAX_INCLUDE_DEPTH",
]
