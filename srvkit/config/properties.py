"""
Properties file parser.

Supported syntax:

    # comment            ! comment
    key = value          key: value          key value
    long = first,\\
           second        (backslash continues the line)
    [server.http]        (prefix for the keys that follow, [] resets)
    port = 8080          (-> server.http.port)
    url = http://${host}:${server.http.port}/
    include = common.properties

Dotted keys build nested mappings. ``true``/``false``/``null`` and
numeric literals become typed values. A string containing commas is
split into a list of trimmed strings.
"""

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ..exceptions import ConfigError
from .constants import INCLUDE_KEY, MAX_CONFIG_SIZE_BYTES, MAX_INCLUDE_DEPTH

# Stands in for an escaped "$" until variables are substituted
_DOLLAR = "\x00"

_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z0-9_.\-]+)\}")
_INT_PATTERN = re.compile(r"^[-+]?(0|[1-9]\d*)$")
_FLOAT_PATTERN = re.compile(r"^[-+]?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?$")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def split_multi_value(value: Any) -> Any:
    """
    Apply the multi-value rule.

    A string containing a comma becomes a list of trimmed parts; any other
    value is returned as is.

    Examples:
        >>> split_multi_value("Session, Static")
        ['Session', 'Static']
        >>> split_multi_value("Session")
        'Session'
    """
    if isinstance(value, str) and "," in value:
        return [part.strip() for part in value.split(",")]
    return value


def convert_value(text: str) -> Any:
    """Convert a raw value to bool, None, int, float, list or string."""
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if _INT_PATTERN.match(text):
        return int(text)
    if _FLOAT_PATTERN.match(text):
        return float(text)
    return split_multi_value(text)


def check_file_size(path: Path) -> None:
    size = path.stat().st_size
    if size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            f"Configuration file '{path}' is {size} bytes, "
            f"exceeding maximum size of {MAX_CONFIG_SIZE_BYTES} bytes"
        )


def _ends_with_continuation(line: str) -> bool:
    count = len(line) - len(line.rstrip("\\"))
    return count % 2 == 1


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (first line number, joined line) skipping blanks and comments."""
    pending: str | None = None
    start = 0
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if pending is None:
            if not line or line[0] in "#!":
                continue
            start = lineno
        else:
            line = pending + line
        if _ends_with_continuation(line):
            pending = line[:-1]
            continue
        pending = None
        yield start, line
    if pending is not None:
        yield start, pending


def _split_key_value(line: str) -> tuple[str, str]:
    i, n = 0, len(line)
    while i < n:
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in "=:" or c.isspace():
            break
        i += 1
    key = line[:i]
    j = i
    while j < n and line[j].isspace():
        j += 1
    if j < n and line[j] in "=:":
        j += 1
    while j < n and line[j].isspace():
        j += 1
    return key, line[j:]


def _unescape(text: str) -> str:
    out: list[str] = []
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if c != "\\" or i + 1 >= n:
            out.append(c)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2 : i + 6]
            if len(digits) != 4 or not all(d in "0123456789abcdefABCDEF" for d in digits):
                raise ValueError(f"malformed \\u escape: \\u{digits}")
            out.append(chr(int(digits, 16)))
            i += 6
            continue
        out.append(_DOLLAR if nxt == "$" else _ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _lookup(tree: dict[str, Any], path: str) -> Any:
    node: Any = tree
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(path)
        node = node[part]
    return node


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, list):
        return ",".join(_as_text(v) for v in value)
    if isinstance(value, dict):
        raise TypeError("cannot substitute a namespace")
    return str(value)


class PropertiesLoader:
    """
    Parses properties text into a nested dict.

    One loader handles one top-level file together with everything it
    includes; ``source_files`` lists every file read, in order.
    """

    def __init__(self, max_depth: int = MAX_INCLUDE_DEPTH) -> None:
        self.max_depth = max_depth
        self.source_files: list[Path] = []

    def load(self, path: str | Path) -> dict[str, Any]:
        """Parse a file (and its includes)."""
        tree: dict[str, Any] = {}
        self._load_file(Path(path).resolve(), tree, [])
        return tree

    def loads(self, text: str, path: str | Path | None = None) -> dict[str, Any]:
        """Parse text. Includes resolve relative to ``path`` (or cwd)."""
        tree: dict[str, Any] = {}
        origin = Path(path).resolve() if path is not None else None
        stack = [origin] if origin is not None else []
        self._parse(text, origin, tree, stack)
        return tree

    def _load_file(self, path: Path, tree: dict[str, Any], stack: list[Path]) -> None:
        if path in stack:
            chain = " -> ".join(str(p) for p in [*stack, path])
            raise ConfigError(f"Circular include detected: {chain}", path=str(path))
        if len(stack) > self.max_depth:
            raise ConfigError(
                f"Include depth exceeds maximum of {self.max_depth}", path=str(path)
            )
        check_file_size(path)
        text = path.read_text(encoding="utf-8")
        self.source_files.append(path)
        self._parse(text, path, tree, [*stack, path])

    def _parse(
        self, text: str, path: Path | None, tree: dict[str, Any], stack: list[Path]
    ) -> None:
        section = ""
        for lineno, line in _logical_lines(text):
            where = {"path": str(path) if path else "<string>", "line": lineno}
            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1].strip()
                continue
            try:
                raw_key, raw_value = _split_key_value(line)
                key = _unescape(raw_key).replace(_DOLLAR, "$")
                value = self._substitute(_unescape(raw_value), tree)
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigError(f"Invalid line: {line!r}", cause=e, **where) from e

            if key == INCLUDE_KEY:
                self._include(value, path, tree, stack, where)
                continue

            full_key = f"{section}.{key}" if section else key
            self._assign(tree, full_key, convert_value(value), where)

    def _substitute(self, value: str, tree: dict[str, Any]) -> str:
        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            try:
                return _as_text(_lookup(tree, name))
            except KeyError:
                raise KeyError(f"Variable '{name}' not found") from None

        return _VAR_PATTERN.sub(replace, value).replace(_DOLLAR, "$")

    def _include(
        self,
        value: str,
        path: Path | None,
        tree: dict[str, Any],
        stack: list[Path],
        where: dict[str, Any],
    ) -> None:
        base = path.parent if path is not None else Path.cwd()
        names = split_multi_value(value)
        for name in [names] if isinstance(names, str) else names:
            if not name:
                continue
            target = (base / name).resolve()
            if not target.is_file():
                raise ConfigError(f"Include file not found: {name}", **where)
            self._load_file(target, tree, stack)

    @staticmethod
    def _assign(
        tree: dict[str, Any], key: str, value: Any, where: dict[str, Any]
    ) -> None:
        parts = key.split(".")
        if not all(parts):
            raise ConfigError(f"Invalid key: {key!r}", **where)
        node = tree
        for i, part in enumerate(parts[:-1]):
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                prefix = ".".join(parts[: i + 1])
                raise ConfigError(
                    f"Key '{key}' conflicts with value at '{prefix}'", **where
                )
            node = child
        leaf = parts[-1]
        if isinstance(node.get(leaf), dict):
            raise ConfigError(f"Key '{key}' conflicts with namespace", **where)
        node[leaf] = value


def parse_properties(text: str, path: str | Path | None = None) -> dict[str, Any]:
    """Parse properties text into a nested dict."""
    return PropertiesLoader().loads(text, path)


def load_properties(path: str | Path) -> dict[str, Any]:
    """Parse a properties file (and its includes) into a nested dict."""
    return PropertiesLoader().load(path)
