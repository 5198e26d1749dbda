"""Packet builder and parser for the servo bus protocol.

Frame layout::

    +---------+----+--------+-------------+------------------+----------+
    | Header  | ID | Length | Instruction |    Parameters    | Checksum |
    | FF FF   | 1 B| 1 B    | 1 B         | 0..252 bytes     | 1 byte   |
    +---------+----+--------+-------------+------------------+----------+

- Length: number of bytes after itself, i.e. instruction + parameters + checksum
- Checksum: inverted 8-bit sum of ID through the last parameter

Responses use the same layout with the instruction byte replaced by the
servo's status (error) byte.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

from ..errors import ChecksumError, ProtocolError
from ..utils.checksum import checksum

logger = logging.getLogger(__name__)

HEADER = b"\xFF\xFF"
MAX_PARAMS = 252  # length byte must fit 1 + params + 1 into 0xFF
RESPONSE_OVERHEAD = 6  # header(2) + id(1) + length(1) + status(1) + checksum(1)


class Instruction(IntEnum):
    """Instruction codes supported by this client."""

    READ = 0x02
    WRITE = 0x03
    ACTION = 0x05


@dataclass(frozen=True)
class Frame:
    """A single protocol frame.

    For requests ``instruction`` holds the instruction code; for responses
    it holds the status byte reported by the servo.
    """

    device_id: int
    instruction: int
    params: bytes = b""

    @property
    def length(self) -> int:
        return len(self.params) + 2

    def to_bytes(self) -> bytes:
        return build_frame(self.device_id, self.instruction, self.params)

    def __repr__(self) -> str:
        return (
            f"Frame(id={self.device_id}, instruction=0x{self.instruction:02X}, "
            f"params={self.params.hex(' ') if self.params else '(empty)'})"
        )


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


def build_frame(device_id: int, instruction: int, params: bytes = b"") -> bytes:
    """Build a complete frame, header through checksum.

    Args:
        device_id: Target servo ID.
        instruction: Instruction code.
        params: Parameter bytes following the instruction.

    Returns:
        An immutable ``bytes`` object ready to write to the bus.
    """
    _check_byte("device_id", device_id)
    _check_byte("instruction", instruction)
    if len(params) > MAX_PARAMS:
        raise ValueError(
            f"Frame carries at most {MAX_PARAMS} parameter bytes, got {len(params)}"
        )
    body = bytes([device_id, len(params) + 2, instruction]) + bytes(params)
    return HEADER + body + bytes([checksum(body)])


def encode_frame(
    device_id: int,
    instruction: Instruction,
    address: int | None = None,
    data: bytes = b"",
) -> bytes:
    """Build a READ, WRITE or ACTION frame.

    READ and WRITE carry ``[address] + data`` as parameters; for READ,
    ``data`` is the single requested byte count. ACTION has no parameters
    and ignores ``address`` and ``data``.
    """
    if instruction == Instruction.ACTION:
        return build_frame(device_id, instruction)
    if address is None:
        raise ValueError(f"{Instruction(instruction).name} requires a register address")
    _check_byte("address", address)
    return build_frame(device_id, instruction, bytes([address]) + bytes(data))


def _verify(raw: bytes) -> None:
    expected = checksum(raw[2:-1])
    if raw[-1] != expected:
        raise ChecksumError(expected, raw[-1], raw)


def parse_frame(raw: bytes) -> Frame:
    """Parse and validate a complete frame.

    Raises:
        ProtocolError: If the header is missing or the length byte does
            not match the data.
        ChecksumError: If the checksum does not match.
    """
    if len(raw) < 6:
        raise ProtocolError(f"Frame too short: {len(raw)} bytes")
    if raw[:2] != HEADER:
        raise ProtocolError(f"Bad frame header: {raw[:2].hex(' ')}")

    length = raw[3]
    if length < 2 or len(raw) != length + 4:
        raise ProtocolError(
            f"Length byte {length} does not match frame size {len(raw)}"
        )

    _verify(raw)
    return Frame(device_id=raw[2], instruction=raw[4], params=bytes(raw[5:-1]))


def decode_response(raw: bytes, length: int) -> bytes:
    """Validate a READ response and return its data bytes.

    Args:
        raw: The full response, ``6 + length`` bytes.
        length: Number of data bytes requested.

    Returns:
        The ``length`` data bytes following the status byte.

    Raises:
        ProtocolError: If ``raw`` is not ``6 + length`` bytes.
        ChecksumError: If the checksum does not match.
    """
    if len(raw) != RESPONSE_OVERHEAD + length:
        raise ProtocolError(
            f"Expected {RESPONSE_OVERHEAD + length}-byte response, got {len(raw)}"
        )
    _verify(raw)

    status = raw[4]
    if status:
        logger.debug("Servo %d reported status 0x%02X", raw[2], status)
    return bytes(raw[5 : 5 + length])
