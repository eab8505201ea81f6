"""
Ctrl+C handling for a running sync.

The first interrupt cancels the sync task, which unwinds every stage and
removes in-flight temporary files. The second one exits immediately.
"""

import asyncio
import os
import signal
from typing import Optional

from ..core.progress import ProgressTracker


class InterruptHandler:
    """Context manager routing SIGINT to the sync task while active."""

    def __init__(self, task: asyncio.Task, progress: Optional[ProgressTracker] = None):
        self.task = task
        self.progress = progress
        self.interrupted = False
        self._loop = None
        self._original_handler = None
        self._uses_loop_handler = False

    def handle(self):
        if not self.interrupted:
            self.interrupted = True
            print("\nExiting... (press Ctrl+C again to quit immediately)")
            if self.progress is not None:
                self.progress.cancel()
            self.task.cancel()
        else:
            os._exit(1)

    def __enter__(self) -> "InterruptHandler":
        self._loop = asyncio.get_running_loop()
        try:
            self._loop.add_signal_handler(signal.SIGINT, self.handle)
            self._uses_loop_handler = True
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            loop = self._loop

            def handle_interrupt(signum, frame):
                loop.call_soon_threadsafe(self.handle)

            try:
                self._original_handler = signal.signal(signal.SIGINT, handle_interrupt)
            except ValueError:
                # Not in the main thread; leave Ctrl+C alone
                self._original_handler = None
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._uses_loop_handler:
            self._loop.remove_signal_handler(signal.SIGINT)
        elif self._original_handler is not None:
            signal.signal(signal.SIGINT, self._original_handler)
        return False
