"""Modified UTF-7, the mailbox-name encoding used by IMAP."""

from __future__ import annotations

import base64
import binascii
import string
from itertools import groupby

_PRINTABLE_LOW = 0x20
_PRINTABLE_HIGH = 0x7E
_REPLACEMENT = 0xFFFD
_MODIFIED_ALPHABET = frozenset(string.ascii_letters + string.digits + "+,")


class Utf7Error(ValueError):
    """Input is not valid modified UTF-7."""


def _is_printable(code: int) -> bool:
    return _PRINTABLE_LOW <= code <= _PRINTABLE_HIGH


def _sequence_length(lead: int) -> int:
    if lead < 0x80:
        return 1
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def _iter_code_points(raw: bytes):
    """Yield code points of UTF-8 bytes; each bad byte becomes U+FFFD."""
    position = 0
    while position < len(raw):
        size = _sequence_length(raw[position])
        if size:
            try:
                char = raw[position:position + size].decode("utf-8")
            except UnicodeDecodeError:
                pass
            else:
                yield ord(char)
                position += size
                continue
        yield _REPLACEMENT
        position += 1


def _encode_run(run: bytes) -> str:
    utf16 = b"".join(chr(code).encode("utf-16-be") for code in _iter_code_points(run))
    encoded = base64.b64encode(utf16).decode("ascii").rstrip("=").replace("/", ",")
    return f"&{encoded}-"


def encode(data) -> str:
    """Encode text (str or UTF-8 bytes) as modified UTF-7."""
    if isinstance(data, str):
        raw = data.encode("utf-8", "surrogatepass")
    else:
        raw = bytes(data)
    parts = []
    for printable, group in groupby(raw, key=_is_printable):
        chunk = bytes(group)
        if printable:
            parts.append(chunk.decode("ascii").replace("&", "&-"))
        else:
            parts.append(_encode_run(chunk))
    return "".join(parts)


def _decode_segment(segment: str) -> str:
    if segment.endswith("=") or any(char not in _MODIFIED_ALPHABET for char in segment):
        raise Utf7Error(f"invalid base64 in segment: {segment!r}")
    if len(segment) % 4 == 1:
        raise Utf7Error(f"truncated base64 in segment: {segment!r}")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        raw = base64.b64decode(padded.replace(",", "/"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise Utf7Error(f"invalid base64 in segment: {segment!r}") from exc
    if not raw or len(raw) % 2:
        raise Utf7Error(f"incomplete UTF-16 data in segment: {segment!r}")

    units = iter(int.from_bytes(raw[i:i + 2], "big") for i in range(0, len(raw), 2))
    chars = []
    for unit in units:
        if 0xD800 <= unit <= 0xDFFF:
            low = next(units, None)
            if low is None or not (0xD800 <= unit <= 0xDBFF and 0xDC00 <= low <= 0xDFFF):
                raise Utf7Error(f"bad surrogate in segment: {segment!r}")
            code = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
        elif _is_printable(unit):
            raise Utf7Error(f"printable ASCII encoded in segment: {segment!r}")
        else:
            code = unit
        chars.append(chr(code))
    return "".join(chars)


def decode(data) -> str:
    """Decode modified UTF-7 (str or bytes); raise Utf7Error if it is invalid."""
    text = bytes(data).decode("latin-1") if isinstance(data, (bytes, bytearray)) else data
    out = []
    in_ascii = True
    position = 0
    while position < len(text):
        char = text[position]
        if not _is_printable(ord(char)):
            raise Utf7Error(f"illegal character {char!r} at {position}")
        if char != "&":
            out.append(char)
            in_ascii = True
            position += 1
            continue

        end = text.find("-", position + 1)
        segment = text[position + 1:] if end == -1 else text[position + 1:end]
        if "\r" in segment or "\n" in segment:
            raise Utf7Error("line break inside encoded segment")
        if end == -1:
            raise Utf7Error("encoded segment is not terminated")
        if not segment:
            out.append("&")
            in_ascii = True
        else:
            if not in_ascii:
                raise Utf7Error("adjacent encoded segments")
            out.append(_decode_segment(segment))
            in_ascii = False
        position = end + 1
    return "".join(out)