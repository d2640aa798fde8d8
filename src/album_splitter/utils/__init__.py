"""Utility functions and helpers"""

from .helpers import safe_print, run_command, capture_command, create_logger
from .encoding import read_cue_text, decode_cue_bytes, write_utf8_cue

__all__ = [
    "safe_print",
    "run_command",
    "capture_command",
    "create_logger",
    "read_cue_text",
    "decode_cue_bytes",
    "write_utf8_cue",
]
