"""String-to-number conversion and number formatting helpers."""

from __future__ import annotations

import math
import re
import struct
from decimal import Decimal

_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_HEX_DIGITS = "0123456789abcdef"
_MISSING = "\x1e"


class _OutOfRange(ValueError):
    """Raised when a number parses but does not fit; carries the clamped value."""

    def __init__(self, text: str, clamped: int) -> None:
        super().__init__(f"value out of range: {text!r}")
        self.clamped = clamped


def _parse_int(text: str, bits: int, signed: bool) -> int:
    pattern = _SIGNED if signed else _UNSIGNED
    if not pattern.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(text)
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if value > high:
        raise _OutOfRange(text, high)
    if value < low:
        raise _OutOfRange(text, low)
    return value


def _must(parse) -> int:
    try:
        return parse()
    except _OutOfRange as exc:
        return exc.clamped
    except ValueError:
        return 0


class StrTo(str):
    """A string that converts itself to numbers.

    The record-separator character stands for a missing value.
    """

    def exists(self) -> bool:
        return str.__str__(self) != _MISSING

    def __str__(self) -> str:
        return str.__str__(self) if self.exists() else ""

    def to_uint8(self) -> int:
        return _parse_int(str(self), 8, signed=False)

    def to_int(self) -> int:
        return _parse_int(str(self), 64, signed=True)

    def to_int64(self) -> int:
        return _parse_int(str(self), 64, signed=True)

    def to_float(self) -> float:
        text = str(self)
        if not text or text != text.strip() or "_" in text:
            raise ValueError(f"invalid syntax: {text!r}")
        return float(text)

    def must_uint8(self) -> int:
        return _must(self.to_uint8)

    def must_int(self) -> int:
        return _must(self.to_int)

    def must_int64(self) -> int:
        return _must(self.to_int64)

    def must_float(self) -> float:
        try:
            return self.to_float()
        except ValueError:
            return 0.0


def pow_int(x: int, y: int) -> int:
    """Integer power; any non-positive exponent gives 1."""
    if y <= 0:
        return 1
    return x**y


def _format_int(value: int, base: int) -> str:
    if not 2 <= base <= 36:
        raise ValueError(f"illegal base: {base}")
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, base)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _shortest_float32(value: float) -> str:
    for digits in range(1, 10):
        candidate = f"{value:.{digits}g}"
        if _to_float32(float(candidate)) == value:
            return candidate
    return repr(value)


def _format_float(value: float, precision: int, bits: int) -> str:
    if bits == 32:
        value = _to_float32(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if precision >= 0:
        return f"{value:.{precision}f}"
    shortest = _shortest_float32(value) if bits == 32 else repr(value)
    return format(Decimal(shortest).normalize(), "f")


def to_str(value, *args: int) -> str:
    """Format any value as a string.

    For floats the optional arguments are precision and bit size, for
    integers the base.
    """

    def arg(index: int, default: int) -> int:
        return args[index] if 0 <= index < len(args) else default

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value, arg(0, -1), arg(1, 64))
    if isinstance(value, int):
        return _format_int(value, arg(0, 10))
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "replace")
    return str(value)


def hex_str_to_int(hex_str: str) -> int:
    """Convert a lower-case hex string to an integer."""
    for char in reversed(hex_str):
        if char not in _HEX_DIGITS:
            raise ValueError(f"invalid hex: {char}")
    return int(hex_str, 16) if hex_str else 0


def int_to_hex_str(num: int) -> str:
    """Convert a non-negative integer to a lower-case hex string."""
    if num == 0:
        return "0"
    if num < 0:
        return ""
    return format(num, "x")