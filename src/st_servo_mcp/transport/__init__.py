"""Byte-level transport to the servo bus."""

from .serial_connection import SerialConnection
