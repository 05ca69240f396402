"""Folding of long header paragraphs for SMTP."""

from __future__ import annotations


def wrap(data):
    """Fold a paragraph for use in an SMTP header.

    Once a line is longer than 76 bytes, the next space becomes CRLF + TAB.
    Accepts bytes or str and returns the same type.
    """
    if isinstance(data, str):
        return wrap(data.encode("utf-8", "surrogateescape")).decode(
            "utf-8", "surrogateescape"
        )
    out = bytearray()
    length = 0
    for byte in bytes(data):
        if length > 76 and byte == 0x20:
            out += b"\r\n\t"
            length = 1
            continue
        out.append(byte)
        if byte == 0x0A:
            length = 0
        length += 1
    return bytes(out)