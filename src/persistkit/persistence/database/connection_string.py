"""Helpers for ``Key=Value;`` connection strings.

Provider registrars accept either a SQLAlchemy URL or a semicolon separated
connection string in the ADO.NET style (``Server=db;Database=catalog;...``).
Keys are matched case-insensitively and surrounding whitespace is ignored.
"""

from __future__ import annotations

from typing import Dict, Mapping


def is_url(connection_string: str) -> bool:
    return "://" in connection_string or connection_string.strip().lower().startswith("sqlite:")


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split ``connection_string`` into a dict keyed by lower-cased key.

    Values may be wrapped in single or double quotes to carry semicolons.

    Raises:
        ValueError: If a segment has no ``=``.
    """

    parts: Dict[str, str] = {}
    for segment in _split_segments(connection_string):
        if not segment.strip():
            continue
        key, sep, value = segment.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Malformed connection string segment: {segment.strip()!r}")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        parts[key.strip().lower()] = value
    return parts


def first_value(parts: Mapping[str, str], *keys: str, default: str | None = None) -> str | None:
    """Return the value of the first key in ``keys`` present in ``parts``."""

    for key in keys:
        value = parts.get(key.lower())
        if value:
            return value
    return default


def split_host_port(server: str, default_port: int | None = None) -> tuple[str, int | None]:
    """Split ``host,port`` or ``host:port`` (SQL Server uses a comma)."""

    for separator in (",", ":"):
        if separator in server:
            host, _, port = server.rpartition(separator)
            if port.strip().isdigit():
                return host.strip(), int(port)
    return server.strip(), default_port


def _split_segments(connection_string: str) -> list[str]:
    segments: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in connection_string:
        if quote:
            if char == quote:
                quote = None
            current.append(char)
        elif char in {"'", '"'} and "".join(current).rstrip().endswith("="):
            quote = char
            current.append(char)
        elif char == ";":
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))
    return segments


def is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"true", "yes", "1", "sspi"}


__all__ = ["first_value", "is_truthy", "is_url", "parse_connection_string", "split_host_port"]
