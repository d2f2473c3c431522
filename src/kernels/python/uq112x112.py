"""
Fixed-width integer helpers and the UQ112x112 price encoding.

Python integers are unbounded, so every width the pool relies on is explicit here:
- reserves live in u112,
- pool timestamps live in u32 and are differenced with wrapping subtraction,
- price accumulators live in u256 and are advanced with wrapping addition,
- every other product or sum is checked against u256 and fails loudly.

A UQ112x112 value is an unsigned fixed-point number with 112 integer bits and
112 fractional bits stored in a u224. Dividing an encoded reserve by the other
reserve yields the instantaneous price without floating point.
"""

from __future__ import annotations

import math


RESOLUTION = 112
Q112 = 1 << RESOLUTION

MAX_U32 = (1 << 32) - 1
MAX_U112 = (1 << 112) - 1
MAX_U224 = (1 << 224) - 1
MAX_U256 = (1 << 256) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_width(name: str, value: int, max_value: int) -> None:
    _require_int(name, value)
    if value < 0 or value > max_value:
        raise ValueError(f"{name} out of range [0, {max_value}]: {value}")


def isqrt(y: int) -> int:
    """floor(sqrt(y)) for a non-negative integer, exact for any size."""
    _require_int("y", y)
    if y < 0:
        raise ValueError(f"y must be non-negative: {y}")
    return math.isqrt(y)


def min_int(x: int, y: int) -> int:
    _require_int("x", x)
    _require_int("y", y)
    return x if x < y else y


def encode(y: int) -> int:
    """Encode a u112 as UQ112x112 (never overflows u224)."""
    _require_width("y", y, MAX_U112)
    return y * Q112


def uqdiv(x: int, y: int) -> int:
    """Divide a UQ112x112 by a u112, returning a UQ112x112 (floor)."""
    _require_width("x", x, MAX_U224)
    _require_width("y", y, MAX_U112)
    if y == 0:
        raise ZeroDivisionError("uqdiv by zero")
    return x // y


def decode(x: int) -> int:
    """Integer part of a UQ112x112 value."""
    _require_int("x", x)
    if x < 0:
        raise ValueError(f"x must be non-negative: {x}")
    return x >> RESOLUTION


def to_u32(value: int) -> int:
    """Truncate a non-negative timestamp to the pool's 32-bit clock."""
    _require_int("value", value)
    if value < 0:
        raise ValueError(f"timestamp must be non-negative: {value}")
    return value & MAX_U32


def wrapping_sub_u32(a: int, b: int) -> int:
    """(a - b) mod 2**32; the pool's elapsed-time computation."""
    _require_width("a", a, MAX_U32)
    _require_width("b", b, MAX_U32)
    return (a - b) & MAX_U32


def wrapping_add_u256(a: int, b: int) -> int:
    """(a + b) mod 2**256; price accumulators overflow on purpose."""
    _require_width("a", a, MAX_U256)
    _require_int("b", b)
    if b < 0:
        raise ValueError(f"b must be non-negative: {b}")
    return (a + b) & MAX_U256


def checked_add(a: int, b: int) -> int:
    _require_int("a", a)
    _require_int("b", b)
    out = a + b
    if out < 0 or out > MAX_U256:
        raise OverflowError(f"u256 add overflow: {a} + {b}")
    return out


def checked_sub(a: int, b: int) -> int:
    _require_int("a", a)
    _require_int("b", b)
    out = a - b
    if out < 0:
        raise OverflowError(f"u256 sub underflow: {a} - {b}")
    return out


def checked_mul(a: int, b: int) -> int:
    _require_int("a", a)
    _require_int("b", b)
    if a < 0 or b < 0:
        raise OverflowError(f"u256 mul of negative operand: {a} * {b}")
    out = a * b
    if out > MAX_U256:
        raise OverflowError(f"u256 mul overflow: {a} * {b}")
    return out


def price_cumulative_delta(reserve_num: int, reserve_den: int, elapsed: int) -> int:
    """
    Accumulator increment for one side of the pool:
        uqdiv(encode(reserve_num), reserve_den) * elapsed

    The product of a u224 and a u32 always fits in u256; the caller adds it to the
    accumulator with `wrapping_add_u256`.
    """
    _require_width("elapsed", elapsed, MAX_U32)
    return uqdiv(encode(reserve_num), reserve_den) * elapsed
