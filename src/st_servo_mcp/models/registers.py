"""Register map of the servo's status table.

Addresses and widths are part of the wire contract. Multi-byte values
are unsigned little-endian.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

GOAL_POSITION_ADDRESS = 0x2A  # position(2) + reserved(2) + speed(2)


@dataclass(frozen=True)
class Register:
    """A named quantity in the servo's memory table."""

    name: str
    address: int
    width: int
    divisor: int = 1
    kind: type = int
    unit: str = ""

    def decode(self, raw: bytes) -> int | float | bool:
        """Convert raw register bytes into the scaled value."""
        if len(raw) != self.width:
            raise ValueError(
                f"{self.name} is {self.width} byte(s) wide, got {len(raw)}"
            )
        value = int.from_bytes(raw, "little")
        if self.kind is bool:
            return value == 1
        if self.divisor != 1:
            return value / self.divisor
        return value

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "address": self.address,
            "width": self.width,
            "divisor": self.divisor,
            "type": self.kind.__name__,
            "unit": self.unit,
        }


PRESENT_POSITION = Register("PRESENT_POSITION", 56, 2, unit="steps")
PRESENT_SPEED = Register("PRESENT_SPEED", 58, 2, unit="steps/s")
PRESENT_LOAD = Register("PRESENT_LOAD", 60, 2, divisor=10, kind=float, unit="%")
PRESENT_VOLTAGE = Register("PRESENT_VOLTAGE", 62, 1, divisor=10, kind=float, unit="V")
PRESENT_TEMPERATURE = Register("PRESENT_TEMPERATURE", 63, 1, unit="°C")
MOVING_STATUS = Register("MOVING_STATUS", 66, 1, kind=bool)
PRESENT_CURRENT = Register("PRESENT_CURRENT", 69, 2, unit="mA")

REGISTERS: Mapping[str, Register] = MappingProxyType({
    reg.name: reg
    for reg in (
        PRESENT_POSITION,
        PRESENT_SPEED,
        PRESENT_LOAD,
        PRESENT_VOLTAGE,
        PRESENT_TEMPERATURE,
        MOVING_STATUS,
        PRESENT_CURRENT,
    )
})


def get_register(name: str) -> Register:
    """Look up a register by name, case-insensitively.

    Raises:
        KeyError: If no register has that name.
    """
    key = name.strip().upper()
    if key not in REGISTERS:
        raise KeyError(f"Unknown register '{name}'. Valid: {list(REGISTERS)}")
    return REGISTERS[key]
