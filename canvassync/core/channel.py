"""
Bounded async channel connecting pipeline stages.

Items travel through an unbounded asyncio.Queue; the capacity is enforced by
a semaphore that senders acquire and receivers release. The end-of-stream
marker does not take a slot, so close() never waits for a consumer, even on
a full channel. Consumers iterate with ``async for`` and stop once the
channel is closed and every queued item has been received.
"""

import asyncio
from typing import AsyncIterator, Generic, Optional, TypeVar

from .constants import CHANNEL_SIZE

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    """Bounded multi-producer, multi-consumer channel with close semantics."""

    def __init__(self, maxsize: int = CHANNEL_SIZE):
        self._queue: asyncio.Queue = asyncio.Queue()
        # maxsize <= 0 means unbounded, as for asyncio.Queue
        self._slots: Optional[asyncio.Semaphore] = asyncio.Semaphore(maxsize) if maxsize > 0 else None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: T):
        """
        Send an item, waiting while the channel is full.

        Raises:
            RuntimeError: The channel is closed, including while waiting for room
        """
        if self._closed:
            raise RuntimeError("send on closed channel")
        if self._slots is not None:
            await self._slots.acquire()
            if self._closed:
                self._slots.release()
                raise RuntimeError("send on closed channel")
        self._queue.put_nowait(item)

    async def close(self):
        """Mark end-of-stream without waiting. Items already sent are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for sibling consumers
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        if self._slots is not None:
            self._slots.release()
        return item
