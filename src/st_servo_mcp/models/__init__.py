"""Data models for the register map and motion targets."""

from .registers import REGISTERS, Register, get_register
from .motion import MotionTarget, angle_to_position
