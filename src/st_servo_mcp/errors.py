"""Exception types raised by the servo protocol stack.

Serial port failures are not wrapped: ``serial.SerialException`` (an
``IOError`` subclass) propagates from pyserial as-is.
"""

from __future__ import annotations


class ServoError(Exception):
    """Base class for servo protocol errors."""


class RangeError(ServoError, ValueError):
    """An angle, position or speed outside its documented domain."""


class ServoTimeoutError(ServoError, TimeoutError):
    """The servo did not answer within the transaction deadline."""


class ChecksumError(ServoError):
    """A received frame's checksum does not match its contents."""

    def __init__(self, expected: int, received: int, frame: bytes = b"") -> None:
        self.expected = expected
        self.received = received
        self.frame = frame
        super().__init__(
            f"Checksum error: expected 0x{expected:02X}, got 0x{received:02X}"
        )


class ProtocolError(ServoError):
    """A received frame is malformed (bad header, length or size)."""
