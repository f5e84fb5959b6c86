"""
Immutable configuration snapshot.
"""

from collections.abc import Iterator, Mapping
from typing import Any


def _freeze(value: Any) -> Any:
    if isinstance(value, ConfigSnapshot):
        return value
    if isinstance(value, Mapping):
        return ConfigSnapshot(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    """Hand out lists as fresh lists so callers can never reach shared state."""
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


class ConfigSnapshot(Mapping[str, Any]):
    """
    Read-only mapping over a loaded configuration.

    Nested mappings are snapshots too and lists are returned as new list
    objects on every access.

    Example:
        >>> snap = ConfigSnapshot({"server": {"http": {"port": 8080}}})
        >>> snap.get_path("server.http.port")
        8080
        >>> snap.get_path("server.https.port") is None
        True
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {
            str(k): _freeze(v) for k, v in (data or {}).items()
        }

    def __getitem__(self, key: str) -> Any:
        return _thaw(self._data[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ConfigSnapshot({self.to_dict()!r})"

    def get_path(self, path: str) -> Any:
        """
        Walk a dotted path.

        Returns None when any segment is missing or a non-mapping is
        traversed. An empty path returns the snapshot itself.
        """
        if not path:
            return self
        node: Any = self
        for part in path.split("."):
            if not isinstance(node, ConfigSnapshot) or part not in node._data:
                return None
            node = node._data[part]
        return _thaw(node)

    def has_path(self, path: str) -> bool:
        if not path:
            return True
        node: Any = self
        for part in path.split("."):
            if not isinstance(node, ConfigSnapshot) or part not in node._data:
                return False
            node = node._data[part]
        return True

    def to_dict(self) -> dict[str, Any]:
        """Deep copy into plain dicts and lists."""

        def plain(value: Any) -> Any:
            if isinstance(value, ConfigSnapshot):
                return value.to_dict()
            if isinstance(value, tuple):
                return [plain(v) for v in value]
            return value

        return {k: plain(v) for k, v in self._data.items()}
