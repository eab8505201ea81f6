"""
Canvas Sync - Mirror Canvas course files onto a local directory.

Import from submodules directly:
    from canvassync.config import SyncConfig
    from canvassync.api import CanvasClient
    from canvassync.sync import sync_courses
"""


def _get_version():
    """Read version from VERSION file."""
    from pathlib import Path
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "0.0.0"


__version__ = _get_version()
