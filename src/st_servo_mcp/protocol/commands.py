"""High-level request builders for the servo.

Each builder returns the complete frame bytes for one transaction and
states how many bytes the servo answers with.
"""

from __future__ import annotations

from ..models.motion import MotionTarget
from ..models.registers import GOAL_POSITION_ADDRESS, Register
from .framing import RESPONSE_OVERHEAD, Instruction, encode_frame

MOVE_ACK_SIZE = 6  # header(2) + id + length + status + checksum


def read_response_size(register: Register) -> int:
    """Size of the servo's answer to a READ of ``register``."""
    return RESPONSE_OVERHEAD + register.width


def build_read(device_id: int, register: Register) -> bytes:
    """Build a READ request for a status register.

    Layout: ``FF FF <id> 04 02 <addr> <width> <checksum>``.
    """
    return encode_frame(
        device_id, Instruction.READ, register.address, bytes([register.width])
    )


def build_move(device_id: int, target: MotionTarget) -> bytes:
    """Build a WRITE of position and speed to the goal position registers."""
    return encode_frame(
        device_id, Instruction.WRITE, GOAL_POSITION_ADDRESS, target.to_bytes()
    )


def build_action(device_id: int) -> bytes:
    """Build an ACTION frame, which triggers a previously queued write."""
    return encode_frame(device_id, Instruction.ACTION)
