"""Motion targets and angle/step conversion.

The servo resolves 4096 steps per revolution. Commanded angles span
-90..90 degrees and map linearly onto steps 0..4095.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import RangeError

STEPS_PER_REVOLUTION = 4096
MIN_POSITION = 0
MAX_POSITION = 4095
MIN_ANGLE = -90.0
MAX_ANGLE = 90.0
MIN_SPEED = 0
MAX_SPEED = 2048


def validate_speed(speed: int) -> int:
    if not isinstance(speed, int):
        raise RangeError(f"Speed must be an integer, got {speed!r}")
    if not MIN_SPEED <= speed <= MAX_SPEED:
        raise RangeError(f"Speed must be between {MIN_SPEED} and {MAX_SPEED}, got {speed}")
    return speed


def validate_position(position: int) -> int:
    if not isinstance(position, int):
        raise RangeError(f"Position must be an integer, got {position!r}")
    if not MIN_POSITION <= position <= MAX_POSITION:
        raise RangeError(
            f"Position must be between {MIN_POSITION} and {MAX_POSITION}, got {position}"
        )
    return position


def angle_to_position(angle: float) -> int:
    """Convert an angle in degrees to an absolute step position.

    The scaled value is truncated toward zero, not rounded, then clamped
    into 0..4095 (90 degrees scales to 4096).

    Raises:
        RangeError: If ``angle`` is outside -90..90.
    """
    if not MIN_ANGLE <= angle <= MAX_ANGLE:
        raise RangeError(f"Angle must be between {MIN_ANGLE:g} and {MAX_ANGLE:g}, got {angle}")
    position = int((angle - MIN_ANGLE) / (MAX_ANGLE - MIN_ANGLE) * STEPS_PER_REVOLUTION)
    position = max(MIN_POSITION, min(MAX_POSITION, position))
    return position


def position_to_angle(position: int) -> float:
    """Inverse of :func:`angle_to_position`, ignoring truncation."""
    return position / STEPS_PER_REVOLUTION * (MAX_ANGLE - MIN_ANGLE) + MIN_ANGLE


@dataclass(frozen=True)
class MotionTarget:
    """An absolute step position and the speed to reach it."""

    position: int
    speed: int

    def __post_init__(self) -> None:
        validate_position(self.position)
        validate_speed(self.speed)

    @classmethod
    def from_angle(cls, angle: float, speed: int) -> MotionTarget:
        return cls(position=angle_to_position(angle), speed=speed)

    @classmethod
    def from_position(cls, position: int, speed: int) -> MotionTarget:
        return cls(position=position, speed=speed)

    def to_bytes(self) -> bytes:
        """Payload for the goal position registers.

        Layout: position low/high, two reserved zero bytes, speed low/high.
        """
        return (
            self.position.to_bytes(2, "little")
            + b"\x00\x00"
            + self.speed.to_bytes(2, "little")
        )
