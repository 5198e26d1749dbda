"""Serial port configuration for the servo bus."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 1_000_000
DEFAULT_TIMEOUT_MS = 2000
DEFAULT_DEVICE_ID = 1

ENV_PREFIX = "ST_SERVO_"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 0)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


@dataclass
class SerialConfig:
    """Settings used to open the serial channel.

    Timeouts are pyserial's per-call read/write timeouts. The deadline for
    a servo to answer a request is fixed separately in the transport.
    """

    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    read_timeout_ms: int = DEFAULT_TIMEOUT_MS
    write_timeout_ms: int = DEFAULT_TIMEOUT_MS
    device_id: int = DEFAULT_DEVICE_ID

    @property
    def read_timeout(self) -> float:
        return self.read_timeout_ms / 1000

    @property
    def write_timeout(self) -> float:
        return self.write_timeout_ms / 1000

    @classmethod
    def from_env(cls) -> SerialConfig:
        """Build a config from ``ST_SERVO_*`` environment variables.

        Recognized: ``ST_SERVO_PORT``, ``ST_SERVO_BAUDRATE``,
        ``ST_SERVO_READ_TIMEOUT_MS``, ``ST_SERVO_WRITE_TIMEOUT_MS`` and
        ``ST_SERVO_ID``. Unset variables keep their defaults.
        """
        return cls(
            port=os.environ.get(ENV_PREFIX + "PORT") or DEFAULT_PORT,
            baudrate=_env_int("BAUDRATE", DEFAULT_BAUDRATE),
            read_timeout_ms=_env_int("READ_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            write_timeout_ms=_env_int("WRITE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            device_id=_env_int("ID", DEFAULT_DEVICE_ID),
        )
