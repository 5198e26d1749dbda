"""Serial connection to the servo bus.

Uses pyserial. The bus is half-duplex and strictly request/response: each
:meth:`SerialConnection.exchange` writes one frame and blocks until the
answer arrives or the response deadline passes.
"""

from __future__ import annotations

import logging
import time

import serial

from ..config import SerialConfig
from ..errors import ServoTimeoutError

logger = logging.getLogger(__name__)

RESPONSE_TIMEOUT_S = 1.0
POLL_INTERVAL_S = 0.001


class SerialConnection:
    """Manages the serial channel to the servo.

    Usage::

        conn = SerialConnection(SerialConfig(port="/dev/ttyUSB0"))
        conn.open()
        response = conn.exchange(frame_bytes, response_length=8)
        conn.close()
    """

    def __init__(self, config: SerialConfig) -> None:
        self._config = config
        self._port: serial.Serial | None = None

    @property
    def config(self) -> SerialConfig:
        return self._config

    @property
    def connected(self) -> bool:
        return self._port is not None and self._port.is_open

    def open(self) -> None:
        """Open the serial port (8N1).

        Raises:
            serial.SerialException: If the port cannot be opened.
        """
        if self._port is not None:
            return

        self._port = serial.Serial(
            port=self._config.port,
            baudrate=self._config.baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=self._config.read_timeout,
            write_timeout=self._config.write_timeout,
        )
        logger.info(
            "Opened %s at %d baud", self._config.port, self._config.baudrate
        )

    def close(self) -> None:
        """Close the serial port. Calling this more than once is a no-op."""
        if self._port is None:
            return

        port, self._port = self._port, None
        try:
            if port.is_open:
                port.close()
        finally:
            logger.info("Closed %s", self._config.port)

    def _require_port(self) -> serial.Serial:
        if self._port is None:
            raise ConnectionError("Serial port is not open")
        return self._port

    def clear_buffers(self) -> None:
        """Discard any pending bytes in both directions."""
        port = self._require_port()
        if port.in_waiting:
            port.reset_input_buffer()
        port.reset_output_buffer()

    def write(self, data: bytes) -> int:
        """Write a frame and wait until it has left the output buffer."""
        port = self._require_port()
        logger.debug("TX %s", data.hex(" "))
        written = port.write(data)
        port.flush()
        return written

    def exchange(
        self,
        frame: bytes,
        response_length: int,
        timeout: float = RESPONSE_TIMEOUT_S,
    ) -> bytes:
        """Send a frame and read the servo's fixed-size answer.

        Stale bytes are discarded before sending, and whatever is left in
        the input buffer is discarded afterwards, on success or failure.

        Args:
            frame: Complete request frame.
            response_length: Expected size of the response in bytes.
            timeout: Seconds to wait for the response, measured from send.

        Returns:
            Exactly ``response_length`` bytes.

        Raises:
            ServoTimeoutError: If no byte arrives before the deadline, or
                the response is still incomplete when it passes.
            serial.SerialException: On port I/O failure.
        """
        port = self._require_port()
        self.clear_buffers()
        try:
            self.write(frame)
            deadline = time.monotonic() + timeout

            while port.in_waiting == 0:
                if time.monotonic() > deadline:
                    raise ServoTimeoutError(
                        f"Servo did not answer within {timeout * 1000:.0f} ms"
                    )
                time.sleep(POLL_INTERVAL_S)

            response = bytearray()
            while len(response) < response_length:
                # Only read what is buffered so a read never blocks past the deadline
                waiting = port.in_waiting
                if waiting:
                    response.extend(
                        port.read(min(waiting, response_length - len(response)))
                    )
                elif time.monotonic() <= deadline:
                    time.sleep(POLL_INTERVAL_S)
                else:
                    raise ServoTimeoutError(
                        f"Incomplete response: got {len(response)} of "
                        f"{response_length} bytes ({bytes(response).hex(' ')})"
                    )

            logger.debug("RX %s", response.hex(" "))
            return bytes(response)
        finally:
            if port.is_open:
                port.reset_input_buffer()
