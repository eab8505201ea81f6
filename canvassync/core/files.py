"""
File system utilities for Canvas Sync.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

StatFunc = Callable[[Path], os.stat_result]


def timestamp_ns(moment: datetime) -> int:
    """Exact nanoseconds since the epoch for an aware datetime (no float rounding)."""
    delta = moment - EPOCH
    return (delta.days * 86400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1000


def stat_or_none(path: Path, stat: StatFunc = os.stat) -> Optional[os.stat_result]:
    """
    Stat a path, mapping "does not exist" to None.

    Every other OSError (permissions, I/O, a file where a directory is
    expected) propagates to the caller.
    """
    try:
        return stat(path)
    except FileNotFoundError:
        return None


def needs_transfer(st: Optional[os.stat_result], size: int, mtime_ns: int) -> bool:
    """Check if a local file is missing or differs in size or modification time."""
    if st is None:
        return True
    return st.st_size != size or st.st_mtime_ns != mtime_ns


def set_mtime(path: Path, mtime_ns: int):
    """Set both access and modification time of path."""
    os.utime(path, ns=(mtime_ns, mtime_ns))
