"""
Shared color definitions for terminal output.
"""

import os
import sys


class Colors:
    RESET = "\x1b[0m"
    RED = "\x1b[38;2;239;68;68m"
    GREEN = "\x1b[38;2;34;197;94m"
    MUTED = "\x1b[38;2;148;163;184m"


class NoColors:
    RESET = RED = GREEN = MUTED = ""


def get_colors(stream=None):
    """Colors for stream, or empty codes when it is not a terminal (or NO_COLOR is set)."""
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR") or not hasattr(stream, "isatty") or not stream.isatty():
        return NoColors
    return Colors
