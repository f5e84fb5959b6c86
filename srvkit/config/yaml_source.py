"""
YAML configuration source.

YAML files are an alternative to properties files. The document must be
a mapping; string values get the same comma splitting as properties.
"""

from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigError
from .properties import check_file_size, split_multi_value


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    return split_multi_value(value)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file into a nested dict."""
    path = Path(path)
    check_file_size(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            "Configuration document must be a mapping",
            path=str(path),
            type=type(data).__name__,
        )
    return _normalize(data)
