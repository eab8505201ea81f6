"""
Terminal output for Canvas Sync.
"""

from .colors import Colors
from .interrupt import InterruptHandler
from .progress_display import SyncProgress, format_summary

__all__ = [
    "Colors",
    "InterruptHandler",
    "SyncProgress",
    "format_summary",
]
