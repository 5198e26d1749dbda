"""High-level servo controller.

Owns the serial channel for its whole lifetime and turns motion and
status calls into protocol transactions::

    with ServoController("/dev/ttyUSB0") as servo:
        servo.rotate_to_angle(45.0, speed=1024)
        print(servo.read_temperature())
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable

from .config import SerialConfig
from .errors import RangeError
from .models.motion import MotionTarget
from .models.registers import (
    MOVING_STATUS,
    PRESENT_CURRENT,
    PRESENT_LOAD,
    PRESENT_POSITION,
    PRESENT_SPEED,
    PRESENT_TEMPERATURE,
    PRESENT_VOLTAGE,
    REGISTERS,
    Register,
    get_register,
)
from .protocol.commands import (
    MOVE_ACK_SIZE,
    build_move,
    build_read,
    read_response_size,
)
from .protocol.framing import decode_response
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)


class ServoController:
    """Controls a single servo on a serial bus.

    The port is opened in the constructor and released by :meth:`close`,
    which the context manager calls on exit. ``close`` is idempotent.

    Args:
        config: A :class:`SerialConfig`, or a port name to use with
            default settings.
        device_id: Overrides ``config.device_id`` when given.

    Raises:
        serial.SerialException: If the port cannot be opened.
    """

    def __init__(self, config: SerialConfig | str, device_id: int | None = None) -> None:
        if isinstance(config, str):
            config = SerialConfig(port=config)
        self._device_id = config.device_id if device_id is None else device_id
        self._connection = SerialConnection(config)
        self._connection.open()

    def __enter__(self) -> ServoController:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def device_id(self) -> int:
        return self._device_id

    @property
    def port(self) -> str:
        return self._connection.config.port

    @property
    def closed(self) -> bool:
        return not self._connection.connected

    def close(self) -> None:
        """Release the serial port."""
        self._connection.close()

    def _require_open(self) -> SerialConnection:
        if self.closed:
            raise ConnectionError("Servo controller is closed")
        return self._connection

    # ─── Motion ──────────────────────────────────────────────────────

    def rotate_to_angle(self, angle: float, speed: int) -> int:
        """Move to ``angle`` degrees (-90..90) at ``speed`` (0..2048).

        Returns:
            The step position that was commanded.
        """
        target = MotionTarget.from_angle(angle, speed)
        logger.debug(
            "Angle: %s, calculated position: %d, speed: %d",
            angle, target.position, target.speed,
        )
        self._move(target)
        return target.position

    def rotate_to_position(self, position: int, speed: int) -> int:
        """Move to absolute step ``position`` (0..4095) at ``speed`` (0..2048)."""
        target = MotionTarget.from_position(position, speed)
        self._move(target)
        return target.position

    def _move(self, target: MotionTarget) -> None:
        conn = self._require_open()
        ack = conn.exchange(build_move(self._device_id, target), MOVE_ACK_SIZE)
        # Acknowledgement contents are not interpreted
        logger.debug("Move acknowledged: %s", ack.hex(" "))

    # ─── Status ──────────────────────────────────────────────────────

    def read_register(self, register: Register | str) -> int | float | bool:
        """Read one status register and return its scaled value."""
        if isinstance(register, str):
            register = get_register(register)
        conn = self._require_open()
        raw = conn.exchange(
            build_read(self._device_id, register), read_response_size(register)
        )
        return register.decode(decode_response(raw, register.width))

    def read_position(self) -> int:
        return self.read_register(PRESENT_POSITION)

    def read_speed(self) -> int:
        return self.read_register(PRESENT_SPEED)

    def read_load(self) -> float:
        return self.read_register(PRESENT_LOAD)

    def read_voltage(self) -> float:
        return self.read_register(PRESENT_VOLTAGE)

    def read_temperature(self) -> int:
        return self.read_register(PRESENT_TEMPERATURE)

    def is_moving(self) -> bool:
        return self.read_register(MOVING_STATUS)

    def read_current(self) -> int:
        return self.read_register(PRESENT_CURRENT)

    def read_status(self) -> dict[str, Any]:
        """Read every status register, keyed by register name."""
        return {name: self.read_register(reg) for name, reg in REGISTERS.items()}


def run_sweep(
    servo: ServoController,
    angles: Iterable[float] = (-90.0, 0.0, 90.0, 0.0),
    speed: int = 1024,
    dwell: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> list[int]:
    """Move through ``angles`` in order, pausing ``dwell`` seconds after each.

    Every angle and the dwell are validated before the first move is sent.

    Returns:
        The step positions commanded, in order.
    """
    if dwell < 0:
        raise RangeError(f"Dwell must be zero or more seconds, got {dwell}")
    angles = list(angles)
    targets = [MotionTarget.from_angle(angle, speed) for angle in angles]
    positions = []
    for angle, target in zip(angles, targets):
        logger.info("Moving servo %d to %s°", servo.device_id, angle)
        positions.append(servo.rotate_to_position(target.position, target.speed))
        sleep(dwell)
    return positions
