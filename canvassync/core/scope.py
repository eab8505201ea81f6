"""
Task scope with shared cancellation for concurrent pipeline stages.

Tasks spawned into a scope share one fate: the first one to fail cancels all
of its siblings, and wait() re-raises that first failure once everything has
unwound. Tasks may keep spawning new tasks into the scope while it is being
waited on (a page fetch spawning the fetch of the next page), and wait()
only returns when the number of finished tasks has caught up with the number
issued.
"""

import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class TaskScope:
    """Group of tasks that fail and cancel together."""

    def __init__(self, name: str = "scope"):
        self.name = name
        self._tasks: Set[asyncio.Task] = set()
        self._done: asyncio.Queue = asyncio.Queue()
        self._error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self._error is not None

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Start coro as a task in this scope."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        if self._error is not None:
            task.cancel()
        return task

    def cancel(self):
        """Cancel every task still running in the scope."""
        for task in self._tasks:
            task.cancel()

    def _on_done(self, task: asyncio.Task):
        self._done.put_nowait(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and self._error is None:
            logger.debug("%s: %s failed, cancelling siblings: %r", self.name, task.get_name(), exc)
            self._error = exc
            self.cancel()

    async def wait(self):
        """
        Wait until every task issued so far (and every task they issue) is done.

        Raises the first failure recorded in the scope. If the waiting task is
        cancelled, all tasks in the scope are cancelled and awaited before the
        cancellation propagates.
        """
        try:
            while self._tasks:
                task = await self._done.get()
                self._tasks.discard(task)
        except asyncio.CancelledError:
            self.cancel()
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            raise

        if self._error is not None:
            raise self._error
