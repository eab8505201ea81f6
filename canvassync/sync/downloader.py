"""
File downloader for Canvas Sync.

A fixed pool of workers drains the queue of files to sync. Every file is
downloaded into a temporary file next to its destination, stamped with the
remote modification time, and renamed over the destination, so a partially
written file is never visible under its final name.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.channel import Channel
from ..core.constants import DEFAULT_DOWNLOAD_WORKERS, TEMP_PREFIX
from ..core.files import set_mtime
from ..core.scope import TaskScope
from .planner import FileToSync

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Totals for one sync run. Shared by all workers of the run."""
    files_synced: int = 0
    bytes_transferred: int = 0

    def record(self, nbytes: int):
        self.files_synced += 1
        self.bytes_transferred += nbytes


async def download_and_write_file(client, item: FileToSync) -> int:
    """
    Download one file to its local path.

    Returns:
        Number of bytes written

    Raises:
        Whatever the transfer or the filesystem raised; the temporary file is
        removed first and the destination is left untouched.
    """
    directory = item.path.parent
    directory.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=".part", dir=directory)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as sink:
            written = await client.download(item.file.url, sink)
        set_mtime(tmp_path, item.file.modified_ns)
        os.replace(tmp_path, item.path)
    except BaseException:
        # Includes cancellation: the half-written file must not survive
        tmp_path.unlink(missing_ok=True)
        raise

    return written


async def run_downloaders(
    client,
    queue: Channel[FileToSync],
    stats: SyncStats,
    progress=None,
    workers: int = DEFAULT_DOWNLOAD_WORKERS,
):
    """
    Download every file received on queue with a pool of workers.

    Returns once queue is closed and drained. The first failed download
    cancels the other workers and is raised.

    Args:
        client: Object with an async download(url, sink) method
        queue: Files to download
        stats: Updated after every completed download
        progress: Optional tracker with file_completed(item, nbytes)
        workers: Number of concurrent downloads
    """
    if workers < 1:
        raise ValueError("workers must be at least 1")

    scope = TaskScope(name="downloaders")

    async def worker():
        async for item in queue:
            written = await download_and_write_file(client, item)
            stats.record(written)
            logger.debug("Downloaded %s (%d bytes)", item.path, written)
            if progress is not None:
                progress.file_completed(item, written)

    for i in range(workers):
        scope.spawn(worker(), name=f"downloader {i}")
    await scope.wait()
