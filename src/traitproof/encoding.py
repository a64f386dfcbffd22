"""Field decoding helpers for bundle JSON.

Each helper pulls one field out of a mapping, checks its type and size,
and raises ``MalformedBundleError`` naming the offending field.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any

from .exceptions import MalformedBundleError


def require(data: Any, key: str, expected: type | tuple[type, ...], prefix: str = "") -> Any:
    """Return ``data[key]`` if present and of the expected type."""
    if not isinstance(data, Mapping):
        raise MalformedBundleError(f"{prefix.rstrip('.') or 'bundle'} must be an object")
    if key not in data:
        raise MalformedBundleError(f"missing field: {prefix}{key}")
    value = data[key]
    # bool is an int subclass
    if not isinstance(value, expected) or (isinstance(value, bool) and expected is int):
        raise MalformedBundleError(f"field {prefix}{key} has wrong type: {type(value).__name__}")
    return value


def require_int(data: Any, key: str, prefix: str = "", minimum: int | None = None) -> int:
    value = require(data, key, int, prefix)
    if minimum is not None and value < minimum:
        raise MalformedBundleError(f"field {prefix}{key} must be >= {minimum}")
    return value


def decode_b64(data: Any, key: str, length: int | None = None, prefix: str = "") -> bytes:
    """Decode a standard base64 field, optionally enforcing its byte length."""
    text = require(data, key, str, prefix)
    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedBundleError(f"field {prefix}{key} is not valid base64: {e}") from e
    if length is not None and len(raw) != length:
        raise MalformedBundleError(f"field {prefix}{key} must be {length} bytes, got {len(raw)}")
    return raw


def decode_hex(data: Any, key: str, length: int | None = None, prefix: str = "") -> bytes:
    """Decode a hex field, optionally enforcing its byte length."""
    text = require(data, key, str, prefix)
    try:
        raw = bytes.fromhex(text)
    except ValueError as e:
        raise MalformedBundleError(f"field {prefix}{key} is not valid hex: {e}") from e
    if length is not None and len(raw) != length:
        raise MalformedBundleError(f"field {prefix}{key} must be {length} bytes, got {len(raw)}")
    return raw


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


__all__ = ["b64", "decode_b64", "decode_hex", "require", "require_int"]
