"""
Deterministic encodings behind every hash the exchange commits to.

- identities: 20-byte values written as lowercase `0x`-prefixed hex,
- documents: canonical JSON (sorted keys, no whitespace, UTF-8, no floats),
- hashes: sha256 over a NUL-terminated `pairswap:<label>:v<version>` prefix
  followed by the payload.
"""

from __future__ import annotations

import hashlib
import json
import string
from typing import Any


_HEX_DIGITS = frozenset(string.hexdigits)


def canonical_hex_fixed_allow_0x(hex_str: str, *, nbytes: int, name: str) -> str:
    """Lowercase, `0x`-prefixed form of an `nbytes`-wide hex value; the prefix is optional on input."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str.strip()
    if body[:2] in ("0x", "0X"):
        body = body[2:]
    if len(body) != 2 * nbytes or not _HEX_DIGITS.issuperset(body):
        raise ValueError(f"{name} must be {nbytes} bytes of hex: {hex_str!r}")
    return "0x" + body.lower()


def canonical_hex_to_bytes(value: str) -> bytes:
    """Raw bytes of a value already produced by `canonical_hex_fixed_allow_0x`."""
    return bytes.fromhex(value[2:])


def _require_encodable(value: Any) -> None:
    # Floats have no single textual form; surrogates have no UTF-8 form.
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError("surrogate code points are not allowed in canonical encoding")
    elif isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _require_encodable(key)
            _require_encodable(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _require_encodable(item)


def canonical_json_bytes(value: Any) -> bytes:
    _require_encodable(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    if not isinstance(label, str) or not label or not label.isascii() or "\x00" in label:
        raise ValueError(f"label must be non-empty ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"pairswap:" + label.encode("ascii") + b":v" + str(version).encode("ascii") + b"\x00"


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()
