"""Shared fixtures: a fake serial port that answers like a servo."""

from __future__ import annotations

import time
from unittest.mock import MagicMock, patch

import pytest

from st_servo_mcp.models.registers import Register
from st_servo_mcp.transport import serial_connection


class FakeSerial:
    """Stands in for ``serial.Serial``.

    Every written frame is answered from a 256-byte memory image:
    READ returns the requested bytes, WRITE stores its data and returns
    an empty status frame.
    """

    def __init__(self) -> None:
        self.is_open = True
        self.memory = bytearray(256)
        self.written: list[bytes] = []
        self.close_count = 0
        self.input_resets = 0
        self.silent = False
        self.corrupt = False
        self.truncate = 0
        self.timeout = 2.0
        self._rx = bytearray()

    @property
    def in_waiting(self) -> int:
        return len(self._rx)

    def set_register(self, register: Register, raw: int) -> None:
        end = register.address + register.width
        self.memory[register.address:end] = raw.to_bytes(register.width, "little")

    def inject(self, data: bytes) -> None:
        self._rx.extend(data)

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        if not self.silent:
            response = self._respond(bytes(data))
            if self.truncate:
                response = response[: -self.truncate]
            self._rx.extend(response)
        return len(data)

    def flush(self) -> None:
        pass

    def read(self, size: int = 1) -> bytes:
        if len(self._rx) < size:
            # pyserial blocks for its timeout when a read comes up short
            time.sleep(self.timeout)
        chunk = bytes(self._rx[:size])
        del self._rx[:size]
        return chunk

    def reset_input_buffer(self) -> None:
        self.input_resets += 1
        self._rx.clear()

    def reset_output_buffer(self) -> None:
        pass

    def close(self) -> None:
        self.close_count += 1
        self.is_open = False

    def _respond(self, frame: bytes) -> bytes:
        device_id, instruction = frame[2], frame[4]
        params = b""
        if instruction == 0x02:
            address, count = frame[5], frame[6]
            params = bytes(self.memory[address:address + count])
        elif instruction == 0x03:
            address, data = frame[5], frame[6:-1]
            self.memory[address:address + len(data)] = data

        body = bytes([device_id, len(params) + 2, 0x00]) + params
        response = bytearray(b"\xFF\xFF" + body + bytes([~sum(body) & 0xFF]))
        if self.corrupt:
            response[5] ^= 0x01
        return bytes(response)


@pytest.fixture
def fake_serial():
    """Patch pyserial so every opened port is a fresh FakeSerial."""
    fake = FakeSerial()
    factory = MagicMock(return_value=fake)
    with patch.object(serial_connection.serial, "Serial", factory):
        fake.factory = factory
        yield fake
