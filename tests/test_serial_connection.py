"""Tests for the serial transport session."""

import time

import pytest
import serial

from st_servo_mcp.config import SerialConfig
from st_servo_mcp.errors import ServoTimeoutError
from st_servo_mcp.models.registers import PRESENT_POSITION
from st_servo_mcp.protocol.commands import build_read
from st_servo_mcp.transport.serial_connection import SerialConnection

READ_POSITION = build_read(1, PRESENT_POSITION)


@pytest.fixture
def conn(fake_serial):
    connection = SerialConnection(SerialConfig(port="/dev/ttyTEST"))
    connection.open()
    yield connection
    connection.close()


def test_open_uses_config(fake_serial):
    connection = SerialConnection(
        SerialConfig(port="COM5", read_timeout_ms=500, write_timeout_ms=250)
    )
    connection.open()
    kwargs = fake_serial.factory.call_args.kwargs
    assert kwargs["port"] == "COM5"
    assert kwargs["baudrate"] == 1_000_000
    assert kwargs["timeout"] == 0.5
    assert kwargs["write_timeout"] == 0.25
    assert kwargs["parity"] == serial.PARITY_NONE
    assert connection.connected


def test_open_failure_propagates(fake_serial):
    fake_serial.factory.side_effect = serial.SerialException("could not open port")
    connection = SerialConnection(SerialConfig(port="COM99"))
    with pytest.raises(IOError):
        connection.open()
    assert not connection.connected


def test_exchange_returns_full_response(conn, fake_serial):
    fake_serial.set_register(PRESENT_POSITION, 2048)
    response = conn.exchange(READ_POSITION, 8)
    assert response == bytes.fromhex("FF FF 01 04 00 00 08 F2")
    assert fake_serial.written == [READ_POSITION]


def test_exchange_discards_stale_bytes(conn, fake_serial):
    fake_serial.inject(b"\xAA\xBB\xCC")
    response = conn.exchange(READ_POSITION, 8)
    assert response[:2] == b"\xFF\xFF"


def test_exchange_discards_trailing_bytes(conn, fake_serial):
    conn.exchange(build_read(1, PRESENT_POSITION), 6)
    assert fake_serial.in_waiting == 0


def test_exchange_timeout_when_silent(conn, fake_serial):
    fake_serial.silent = True
    start = time.monotonic()
    with pytest.raises(ServoTimeoutError):
        conn.exchange(READ_POSITION, 8)
    elapsed = time.monotonic() - start
    assert 1.0 <= elapsed < 2.0


def test_exchange_short_response_times_out(conn, fake_serial):
    fake_serial.truncate = 2
    with pytest.raises(ServoTimeoutError, match="Incomplete response"):
        conn.exchange(READ_POSITION, 8, timeout=0.05)
    assert fake_serial.in_waiting == 0


def test_exchange_short_response_meets_deadline(conn, fake_serial):
    """A truncated answer fails at the response deadline, not after read timeouts."""
    fake_serial.truncate = 2
    start = time.monotonic()
    with pytest.raises(ServoTimeoutError, match="Incomplete response"):
        conn.exchange(READ_POSITION, 8)
    elapsed = time.monotonic() - start
    assert 1.0 <= elapsed < 1.5


def test_exchange_never_issues_short_reads(conn, fake_serial):
    """Reads only ask for buffered bytes, so a normal exchange never blocks."""
    fake_serial.timeout = 5.0
    start = time.monotonic()
    assert len(conn.exchange(READ_POSITION, 8)) == 8
    assert time.monotonic() - start < 0.5


def test_timeout_error_is_builtin_timeout():
    assert issubclass(ServoTimeoutError, TimeoutError)


def test_close_is_idempotent(conn, fake_serial):
    conn.close()
    conn.close()
    assert fake_serial.close_count == 1
    assert not conn.connected


def test_write_when_closed(conn):
    conn.close()
    with pytest.raises(ConnectionError):
        conn.exchange(READ_POSITION, 8)
