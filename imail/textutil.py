"""Assorted string, file, encoding and formatting helpers."""

from __future__ import annotations

import base64
import binascii
import hashlib
import math
import random
import re
import string
import urllib.error
import urllib.request
from collections import deque
from datetime import datetime
from pathlib import Path

from imail.convert import StrTo

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 12 * MONTH

_NUMERIC_TRIM = " \\tnrvf"

_ATEXT = r"[A-Za-z0-9!#$%&'*+\-/=?^_`{|}~\u0080-\U0010FFFF]"
_DOT_ATOM = rf"{_ATEXT}+(?:\.{_ATEXT}+)*"
_QUOTED = r'"(?:[^"\\\r\n]|\\[^\r\n])*"'
_ANGLE_ADDR = re.compile(rf"<(?:{_DOT_ATOM}|{_QUOTED})@{_DOT_ATOM}>")


def get_eol() -> str:
    """Return the line ending used in mail content."""
    return "\r\n"


def md5_bytes(buf: bytes) -> str:
    return hashlib.md5(buf).hexdigest()


def md5(text: str) -> str:
    return md5_bytes(text.encode("utf-8"))


def to_slice(text: str) -> list[int]:
    """Parse a comma-separated list of integers."""
    return [StrTo(part).to_int64() for part in text.split(",")]


def check_string_is_exist(source: str, check) -> bool:
    """Return True if source equals any item of check, ignoring case."""
    folded = source.casefold()
    return any(folded == item.casefold() for item in check)


def _compute_time_diff(diff: int) -> tuple[int, str]:
    if diff <= 0:
        return 0, "now"
    if diff < 2:
        return 0, "1 second"
    if diff < MINUTE:
        return 0, f"{diff} seconds"
    if diff < 2 * MINUTE:
        return diff - MINUTE, "1 minute"
    if diff < HOUR:
        return diff % MINUTE, f"{diff // MINUTE} minutes"
    if diff < 2 * HOUR:
        return diff - HOUR, "1 hour"
    if diff < DAY:
        return diff % HOUR, f"{diff // HOUR} hours"
    if diff < 2 * DAY:
        return diff - DAY, "1 day"
    if diff < WEEK:
        return diff % DAY, f"{diff // DAY} days"
    if diff < 2 * WEEK:
        return diff - WEEK, "1 week"
    if diff < MONTH:
        return diff % WEEK, f"{diff // WEEK} weeks"
    if diff < 2 * MONTH:
        return diff - MONTH, "1 month"
    if diff < YEAR:
        return diff % MONTH, f"{diff // MONTH} months"
    if diff < 2 * YEAR:
        return diff - YEAR, "1 year"
    return 0, f"{diff // YEAR} years"


def time_since_pro(then: datetime, now: datetime | None = None) -> str:
    """Describe the full interval from then to now, e.g. "1 hour, 1 minute"."""
    if now is None:
        now = datetime.now(then.tzinfo)
    if then > now:
        return "future"
    diff = math.floor(now.timestamp()) - math.floor(then.timestamp())
    parts = []
    while diff != 0:
        diff, text = _compute_time_diff(diff)
        parts.append(text)
    return ", ".join(parts)


def _humanate_bytes(size: int, base: float, sizes: list[str]) -> str:
    if size < 10:
        return f"{size} B"
    exponent = math.floor(math.log(size) / math.log(base))
    value = size / math.pow(base, exponent)
    precision = 1 if value < 10 else 0
    return f"{value:.{precision}f} {sizes[exponent]}"


def file_size(size: int) -> str:
    """Render a byte count with a binary unit suffix."""
    sizes = ["B", "KB", "MB", "GB", "TB", "PB", "EB"]
    return _humanate_bytes(size % (1 << 64), 1024, sizes)


def size_format(size: float) -> str:
    """Render a size with two decimals and a unit up to TB."""
    units = ["Byte", "KB", "MB", "GB", "TB"]
    index = 0
    while size > 1024:
        size /= 1024
        index += 1
    if index >= len(units):
        raise ValueError("size too large to format")
    return f"{size:.2f} {units[index]}"


def rand_string(length: int) -> str:
    """Return a random string of upper-case ASCII letters."""
    return "".join(random.choices(string.ascii_uppercase, k=length))


def remove_duplicates_and_empty(items) -> list[str]:
    """Drop empty strings and items equal to the one just before them."""
    result = []
    previous = None
    first = True
    for item in items:
        if (not first and item == previous) or not item:
            previous, first = item, False
            continue
        result.append(item)
        previous, first = item, False
    return result


def get_http_data(url: str) -> str:
    """Fetch a URL and return its body as text."""
    try:
        with urllib.request.urlopen(url) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        body = exc.read()
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise ConnectionError(f"failed to fetch resource: {url}") from exc
    return body.decode("utf-8", "replace")


def path_exists(path) -> bool:
    """Return whether path exists; errors other than "not found" propagate."""
    try:
        Path(path).stat()
    except FileNotFoundError:
        return False
    return True


def write_file(file, content: str) -> None:
    Path(file).write_bytes(content.encode("utf-8", "surrogateescape"))


def read_file(file) -> str:
    return Path(file).read_bytes().decode("utf-8", "surrogateescape")


def base64_encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8", "surrogateescape")).decode("ascii")


def base64_decode(text: str) -> str:
    """Decode standard base64; raises ValueError on malformed input."""
    cleaned = text.replace("\r", "").replace("\n", "")
    try:
        raw = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"illegal base64 data: {text!r}") from exc
    return raw.decode("utf-8", "surrogateescape")


def convert_to_string(src, src_code: str, tag_code: str) -> str:
    """Decode src from src_code, then read the result as tag_code."""
    if isinstance(src, str):
        raw = src.encode("utf-8", "surrogateescape")
    else:
        raw = bytes(src)
    text = raw.decode(src_code, errors="replace")
    return text.encode("utf-8").decode(tag_code, errors="replace")


def filter_address_body(src: str) -> str:
    """Strip SMTP parameters (BODY=, SIZE=) from an address argument."""
    return src.split("BODY")[0].split("SIZE")[0].strip()


def is_numeric(val) -> bool:
    """Report whether val is a float/complex or a numeric-looking string."""
    if isinstance(val, (float, complex)):
        return True
    if not isinstance(val, str) or not val:
        return False
    text = val.strip(_NUMERIC_TRIM)
    if not text:
        return False
    if text[0] in "+-":
        if len(text) == 1:
            return False
        text = text[1:]
    if len(text) > 2 and text[0] == "0" and text[1] in "xX":
        return all(char in string.hexdigits for char in text[2:])
    point = exponent = 0
    last = len(text) - 1
    for index, char in enumerate(text):
        if char == ".":
            if point > 0 or exponent > 0 or index == last:
                return False
            point = index
        elif char in "eE":
            if index == 0 or exponent > 0 or index == last:
                return False
            exponent = index
        elif not "0" <= char <= "9":
            return False
    return True


def check_standard_mail(src: str) -> bool:
    """Return True if src is an address in angle brackets, e.g. "<a@b.c>"."""
    return _ANGLE_ADDR.fullmatch(src) is not None


def get_real_mail(src: str) -> str:
    """Strip the surrounding angle brackets from an address."""
    return src[1:-1]


def to_snake_case(text: str) -> str:
    """Convert upper-case letters, spaces and hyphens to snake_case.

    "HTTPServer" becomes "http_server", "GO PATH" becomes "go_path".
    """
    chars = deque(text)
    out: list[str] = []
    current = "_"
    while chars:
        previous = current
        current = chars.popleft()
        if not current.isupper():
            if current in " -":
                current = "_"
            out.append(current)
            continue

        if previous != "_":
            out.append("_")
        out.append(current.lower())
        if not chars:
            break

        current = chars.popleft()
        if not current.isupper():
            out.append(current)
            continue

        # A run of capitals: treat all but the last as an abbreviation.
        while chars:
            last_upper = current
            current = chars.popleft()
            if not current.isupper():
                if current in "_ -":
                    current = "_"
                    out.append(last_upper.lower())
                else:
                    out.extend(("_", last_upper.lower(), current))
                break
            out.append(last_upper.lower())

        if not chars or current == "_":
            out.append(current.lower())
    return "".join(out)