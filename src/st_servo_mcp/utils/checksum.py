"""One-byte checksum used by the servo bus protocol."""

from __future__ import annotations


def checksum(data: bytes) -> int:
    """Return the inverted 8-bit sum of ``data``.

    The same routine is used to compute the checksum of outgoing frames
    and to validate incoming ones. ``data`` covers everything from the
    device ID through the last parameter byte.
    """
    return ~sum(data) & 0xFF
