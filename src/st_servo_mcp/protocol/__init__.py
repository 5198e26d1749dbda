"""Protocol layer: frame encoding, checksum validation and request builders."""

from .framing import Frame, Instruction, build_frame, decode_response, encode_frame, parse_frame
from .commands import build_action, build_move, build_read
