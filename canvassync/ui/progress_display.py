"""
Sync progress display for Canvas Sync.

Prints one line per completed download and the final summary.
"""

from pathlib import Path

from ..core.formatting import format_size
from ..core.progress import ProgressTracker
from .colors import get_colors


def format_summary(files_synced: int, bytes_transferred: int, url: str) -> str:
    """One-line result of a sync run."""
    if files_synced == 0:
        return f"✓ Up to date with {url}."
    if files_synced == 1:
        return f"✓ Transferred 1 file ({format_size(bytes_transferred)}) from {url}."
    return f"✓ Transferred {files_synced} files ({format_size(bytes_transferred)}) from {url}."


class SyncProgress(ProgressTracker):
    """Progress tracker that reports each completed download."""

    def __init__(self, directory: Path, quiet: bool = False):
        super().__init__()
        self.directory = Path(directory)
        self.quiet = quiet
        self.colors = get_colors()

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.directory).as_posix()
        except ValueError:
            return str(path)

    def file_completed(self, item, nbytes: int):
        """Print a finished download (called from the downloader pool)."""
        if not self.quiet and not self.cancelled:
            c = self.colors
            self.write(f"  ↓ {self._display_path(item.path)} {c.MUTED}({format_size(nbytes)}){c.RESET}")
