"""
Canvas API module.

Handles the REST client and the resource models it returns.
"""

from .client import CanvasClient, CanvasClientConfig, check_network
from .models import Course, File, Folder

__all__ = [
    "CanvasClient",
    "CanvasClientConfig",
    "check_network",
    "Course",
    "File",
    "Folder",
]
