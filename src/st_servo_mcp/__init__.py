"""Control an ST/SCS-series serial bus servo, exposed as an MCP server."""

from .controller import ServoController
from .config import SerialConfig
from .errors import ChecksumError, ProtocolError, RangeError, ServoError, ServoTimeoutError

__version__ = "0.1.0"
