"""Incremental value extractor — pull complete JSON values out of a byte buffer.

Scans an append-only buffer for top-level objects or arrays, tracking
bracket depth and string-literal state so that brackets inside quoted
strings do not count. Each complete value is cut out of the buffer
(together with any noise before it); partial trailing data stays put
until more bytes arrive.

Only ASCII bytes are structural, and UTF-8 continuation bytes never
collide with them, so chunks may split multi-byte characters anywhere.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_OPEN_OBJECT = ord("{")
_OPEN_ARRAY = ord("[")
_CLOSERS = {_OPEN_OBJECT: ord("}"), _OPEN_ARRAY: ord("]")}
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


def _find_opener(buffer: bytearray) -> int:
    """Index of the first ``{`` or ``[`` in buffer, or -1."""
    positions = [p for p in (buffer.find(b"{"), buffer.find(b"[")) if p >= 0]
    return min(positions) if positions else -1


def _find_closer(buffer: bytearray, start: int) -> int:
    """Index of the bracket closing the value opened at ``start``, or -1.

    Only brackets of the opener's own family change the depth.
    """
    opener = buffer[start]
    closer = _CLOSERS[opener]
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(buffer)):
        c = buffer[i]
        if in_string:
            if escape:
                escape = False
            elif c == _BACKSLASH:
                escape = True
            elif c == _QUOTE:
                in_string = False
        elif c == _QUOTE:
            in_string = True
        elif c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract_complete_values(buffer: bytearray) -> list[bytes]:
    """Remove and return every complete top-level value at the head of buffer.

    Safe to call repeatedly as bytes are appended; with nothing complete
    it returns ``[]`` and leaves the buffer untouched. Leading noise is
    only discarded together with the value that follows it.

    Args:
        buffer: Stream buffer, mutated in place.

    Returns:
        Raw text of each complete value, in stream order.
    """
    values: list[bytes] = []

    while True:
        start = _find_opener(buffer)
        if start < 0:
            break
        end = _find_closer(buffer, start)
        if end < 0:
            # Need more data
            break
        values.append(bytes(buffer[start : end + 1]))
        if start:
            logger.debug("Discarding %d byte(s) of noise before value", start)
        del buffer[: end + 1]

    return values
