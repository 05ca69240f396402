"""Loose regular-expression checks for common text shapes."""

from __future__ import annotations

import re

_EMAIL = re.compile(r"\w+(?:[-+.]\w+)*@\w+(?:[-.]\w+)*\.\w+(?:[-.]\w+)*", re.ASCII)
_URL = re.compile(r"[a-zA-z]+://[^\t\n\f\r ]*")
_IPV4 = re.compile(
    r"(?:(?:2[0-4][0-9]|25[0-5]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:2[0-4][0-9]|25[0-5]|[01]?[0-9][0-9]?)"
)
_CODE = re.compile(r"[1-9][0-9]5")


def is_email(text: str) -> bool:
    """Return True if text contains something shaped like an e-mail address."""
    return _EMAIL.search(text) is not None


def is_url(text: str) -> bool:
    """Return True if text contains something shaped like a URL."""
    return _URL.search(text) is not None


def is_ipv4(text: str) -> bool:
    """Return True if text contains a dotted IPv4 address."""
    return _IPV4.search(text) is not None


def is_code(text: str) -> bool:
    """Return True if text contains a code of the form digit, digit, '5'."""
    return _CODE.search(text) is not None