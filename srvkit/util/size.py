"""
Byte-size parsing for limits such as ``server.router.JSON.limit``.

Example Usage:
    >>> size_to_bytes("100kb")
    102400

    >>> size_to_bytes(2048)
    2048

    >>> size_str(102400)
    '100KB'
"""

import re

BYTES_PER_KB = 1024
BYTES_PER_MB = 1024**2
BYTES_PER_GB = 1024**3

_UNITS = {
    "B": 1,
    "KB": BYTES_PER_KB,
    "MB": BYTES_PER_MB,
    "GB": BYTES_PER_GB,
    "KIB": BYTES_PER_KB,
    "MIB": BYTES_PER_MB,
    "GIB": BYTES_PER_GB,
}

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(GIB|MIB|KIB|GB|MB|KB|B)?$", re.IGNORECASE)


class InvalidSizeError(ValueError):
    """Raised when an invalid size value or string is provided."""

    pass


def size_to_bytes(size: str | int) -> int:
    """
    Parse a size into bytes.

    Integers are taken as bytes. Strings are a number with an optional
    unit (B, KB, MB, GB, KiB, MiB, GiB), case-insensitive, 1024-based.

    Raises:
        InvalidSizeError: If the value cannot be parsed
    """
    if isinstance(size, bool):
        raise InvalidSizeError(f"Invalid size: {size!r}")
    if isinstance(size, int):
        if size < 0:
            raise InvalidSizeError(f"Size cannot be negative: {size}")
        return size
    if not isinstance(size, str) or not size.strip():
        raise InvalidSizeError("Size string cannot be empty")

    match = _SIZE_PATTERN.match(size.strip())
    if not match:
        raise InvalidSizeError(f"Could not parse size string: '{size}'")

    value = float(match.group(1))
    unit = (match.group(2) or "B").upper()
    return int(value * _UNITS[unit])


def size_str(size: int) -> str:
    """Format a byte count with the largest whole-ish unit (e.g. '1.5MB')."""
    for factor, label in ((BYTES_PER_GB, "GB"), (BYTES_PER_MB, "MB"), (BYTES_PER_KB, "KB")):
        if size >= factor:
            value = size / factor
            text = f"{value:.1f}".rstrip("0").rstrip(".")
            return f"{text}{label}"
    return f"{size}B"


__all__ = ["size_to_bytes", "size_str", "InvalidSizeError"]
