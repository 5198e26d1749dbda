"""MCP server entry point for an ST/SCS-series serial bus servo.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import SerialConfig
from .controller import ServoController, run_sweep as _run_sweep
from .errors import ServoError
from .models.motion import (
    MAX_ANGLE,
    MAX_POSITION,
    MAX_SPEED,
    MIN_ANGLE,
    MIN_POSITION,
    MIN_SPEED,
    STEPS_PER_REVOLUTION,
    position_to_angle,
)
from .models.registers import REGISTERS, get_register

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "st-servo",
    instructions="MCP server for a single ST/SCS-series serial bus servo",
)

# Global connection state
_controller: ServoController | None = None


def _get_controller() -> ServoController:
    """Get the active controller, raising if not connected."""
    if _controller is None or _controller.closed:
        raise RuntimeError(
            "Not connected to servo. Use the 'connect' tool first."
        )
    return _controller


def _error(action: str, exc: Exception) -> dict[str, Any]:
    logger.warning("%s failed: %s", action, exc)
    return {"error": str(exc)}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str | None = None, baudrate: int | None = None) -> dict[str, Any]:
    """Open the serial port to the servo.

    Settings not given here come from ST_SERVO_* environment variables.

    Args:
        port: Serial port name, e.g. /dev/ttyUSB0 or COM5.
        baudrate: Bus baud rate (default 1000000).
    """
    global _controller
    if _controller is not None and not _controller.closed:
        return {
            "connected": True,
            "message": "Already connected",
            "port": _controller.port,
        }

    config = SerialConfig.from_env()
    if port is not None:
        config.port = port
    if baudrate is not None:
        config.baudrate = baudrate

    try:
        _controller = ServoController(config)
    except OSError as e:
        return _error("connect", e)

    return {
        "connected": True,
        "port": config.port,
        "baudrate": config.baudrate,
        "device_id": config.device_id,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial port."""
    global _controller
    if _controller is None:
        return {"disconnected": True}
    _controller.close()
    _controller = None
    return {"disconnected": True}


# ─── MOTION TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def rotate_to_angle(angle: float, speed: int = 1024) -> dict[str, Any]:
    """Rotate the servo to an angle.

    Args:
        angle: Target angle in degrees (-90 to 90).
        speed: Speed in steps/s (0-2048).
    """
    servo = _get_controller()
    try:
        position = servo.rotate_to_angle(angle, speed)
    except (ServoError, OSError) as e:
        return _error("rotate_to_angle", e)
    return {"angle": angle, "position": position, "speed": speed}


@mcp.tool()
def rotate_to_position(position: int, speed: int = 1024) -> dict[str, Any]:
    """Rotate the servo to an absolute step position.

    Args:
        position: Target position in steps (0-4095).
        speed: Speed in steps/s (0-2048).
    """
    servo = _get_controller()
    try:
        servo.rotate_to_position(position, speed)
    except (ServoError, OSError) as e:
        return _error("rotate_to_position", e)
    return {"position": position, "speed": speed}


@mcp.tool()
def run_sweep(speed: int = 1024, dwell: float = 5.0) -> dict[str, Any]:
    """Read all status registers, then sweep through -90, 0, 90 and 0 degrees.

    Args:
        speed: Speed in steps/s (0-2048).
        dwell: Seconds to wait after each move.
    """
    servo = _get_controller()
    try:
        status = servo.read_status()
        positions = _run_sweep(servo, speed=speed, dwell=dwell)
    except (ServoError, OSError) as e:
        return _error("run_sweep", e)
    return {"status": status, "positions": positions}


# ─── STATUS TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def read_register(name: str) -> dict[str, Any]:
    """Read a single status register.

    Args:
        name: Register name, e.g. PRESENT_VOLTAGE (see servo://registers).
    """
    try:
        register = get_register(name)
    except KeyError as e:
        return _error("read_register", e)

    servo = _get_controller()
    try:
        value = servo.read_register(register)
    except (ServoError, OSError) as e:
        return _error("read_register", e)
    return {"register": register.name, "value": value, "unit": register.unit}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Read position, speed, load, voltage, temperature, moving flag and current."""
    servo = _get_controller()
    try:
        status = servo.read_status()
    except (ServoError, OSError) as e:
        return _error("get_status", e)
    status["angle"] = round(position_to_angle(status["PRESENT_POSITION"]), 2)
    return status


@mcp.tool()
def is_moving() -> dict[str, Any]:
    """Report whether the servo is currently moving."""
    servo = _get_controller()
    try:
        moving = servo.is_moving()
    except (ServoError, OSError) as e:
        return _error("is_moving", e)
    return {"moving": moving}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("servo://registers")
def resource_registers() -> str:
    """Status register map: address, width and scaling of each register."""
    return json.dumps({"registers": [reg.to_dict() for reg in REGISTERS.values()]})


@mcp.resource("servo://limits")
def resource_limits() -> str:
    """Accepted angle, position and speed ranges."""
    return json.dumps({
        "angle": [MIN_ANGLE, MAX_ANGLE],
        "position": [MIN_POSITION, MAX_POSITION],
        "speed": [MIN_SPEED, MAX_SPEED],
        "steps_per_revolution": STEPS_PER_REVOLUTION,
    })


@mcp.resource("servo://status")
def resource_status() -> str:
    """Live servo status."""
    if _controller is None or _controller.closed:
        return json.dumps({"error": "Not connected"})
    return json.dumps(get_status())


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def calibrate_zero() -> str:
    """Guide the AI through checking the servo's zero position."""
    return """Check that the servo's mechanical zero matches 0 degrees.

1. Use get_status and confirm voltage and temperature are in a safe range
   and that the servo is not moving.
2. Use rotate_to_angle with angle 0 and a low speed (e.g. 200).
3. Poll is_moving until it reports false.
4. Read PRESENT_POSITION with read_register; it should be close to 2048.

Report the offset in steps and degrees (4096 steps per revolution)."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=os.environ.get("ST_SERVO_LOG_LEVEL", "INFO").upper())
    try:
        mcp.run(transport="stdio")
    finally:
        disconnect()


if __name__ == "__main__":
    main()
