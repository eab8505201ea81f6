"""
Tests for the concurrency primitives.

Channel - bounded channel with close.
TaskScope - shared-fate task group with a completion barrier.
"""

import asyncio

import pytest

from canvassync.core.channel import Channel
from canvassync.core.scope import TaskScope


class TestChannel:
    """Tests for Channel."""

    def test_items_delivered_then_iteration_stops(self):
        async def scenario():
            channel = Channel(maxsize=2)

            async def produce():
                for i in range(5):
                    await channel.send(i)
                await channel.close()

            producer = asyncio.create_task(produce())
            received = [item async for item in channel]
            await producer
            return received

        assert asyncio.run(scenario()) == [0, 1, 2, 3, 4]

    def test_close_wakes_every_consumer(self):
        """All consumers of one channel stop after close, not just the first."""
        async def scenario():
            channel = Channel(maxsize=1)
            received = []

            async def consume():
                async for item in channel:
                    received.append(item)

            consumers = [asyncio.create_task(consume()) for _ in range(4)]
            for i in range(6):
                await channel.send(i)
            await channel.close()
            await asyncio.wait_for(asyncio.gather(*consumers), timeout=2)
            return received

        assert sorted(asyncio.run(scenario())) == [0, 1, 2, 3, 4, 5]

    def test_send_after_close_raises(self):
        async def scenario():
            channel = Channel()
            await channel.close()
            with pytest.raises(RuntimeError):
                await channel.send(1)

        asyncio.run(scenario())

    def test_close_full_channel_does_not_wait(self):
        """Closing needs no free slot; queued items are still delivered."""
        async def scenario():
            channel = Channel(maxsize=1)
            await channel.send(1)
            await asyncio.wait_for(channel.close(), timeout=1)
            return [item async for item in channel]

        assert asyncio.run(scenario()) == [1]

    def test_send_waits_while_full(self):
        async def scenario():
            channel = Channel(maxsize=1)
            await channel.send(1)
            sender = asyncio.create_task(channel.send(2))
            for _ in range(5):
                await asyncio.sleep(0)
            assert not sender.done()

            assert await channel.__anext__() == 1
            await asyncio.wait_for(sender, timeout=1)
            await channel.close()
            return [item async for item in channel]

        assert asyncio.run(scenario()) == [2]

    def test_blocked_sender_fails_when_closed(self):
        async def scenario():
            channel = Channel(maxsize=1)
            await channel.send(1)
            sender = asyncio.create_task(channel.send(2))
            await asyncio.sleep(0)
            await channel.close()

            received = [item async for item in channel]
            with pytest.raises(RuntimeError):
                await asyncio.wait_for(sender, timeout=1)
            return received

        assert asyncio.run(scenario()) == [1]

    def test_close_twice_is_harmless(self):
        async def scenario():
            channel = Channel()
            await channel.close()
            await channel.close()
            return [item async for item in channel]

        assert asyncio.run(scenario()) == []


class TestTaskScope:
    """Tests for TaskScope."""

    def test_wait_covers_tasks_spawned_by_tasks(self):
        """A chain of tasks each spawning the next is fully awaited."""
        async def scenario():
            scope = TaskScope()
            visited = []

            async def step(n):
                await asyncio.sleep(0)
                visited.append(n)
                if n < 20:
                    scope.spawn(step(n + 1))

            scope.spawn(step(0))
            await scope.wait()
            return visited

        assert asyncio.run(scenario()) == list(range(21))

    def test_wait_with_no_tasks_returns(self):
        asyncio.run(TaskScope().wait())

    def test_first_failure_cancels_siblings_and_is_raised(self):
        async def scenario():
            scope = TaskScope()
            sibling_cancelled = asyncio.Event()

            async def forever():
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    sibling_cancelled.set()
                    raise

            async def fail():
                await asyncio.sleep(0)
                raise ValueError("boom")

            scope.spawn(forever())
            scope.spawn(forever())
            scope.spawn(fail())
            with pytest.raises(ValueError, match="boom"):
                await asyncio.wait_for(scope.wait(), timeout=2)
            assert sibling_cancelled.is_set()
            assert scope.failed

        asyncio.run(scenario())

    def test_only_first_failure_is_raised(self):
        async def scenario():
            scope = TaskScope()

            async def fail_first():
                raise KeyError("first")

            async def fail_later():
                await asyncio.sleep(0.01)
                raise ValueError("second")

            scope.spawn(fail_first())
            scope.spawn(fail_later())
            with pytest.raises(KeyError):
                await scope.wait()

        asyncio.run(scenario())

    def test_spawn_after_failure_is_cancelled(self):
        async def scenario():
            scope = TaskScope()

            async def fail():
                raise ValueError("boom")

            async def late():
                await asyncio.sleep(0)
                return "ran"

            scope.spawn(fail())
            await asyncio.sleep(0.01)
            task = scope.spawn(late())
            with pytest.raises(ValueError):
                await scope.wait()
            assert task.cancelled()

        asyncio.run(scenario())

    def test_cancelling_waiter_cancels_children(self):
        async def scenario():
            scope = TaskScope()
            started = asyncio.Event()
            children = []

            async def forever():
                started.set()
                await asyncio.Event().wait()

            for _ in range(3):
                children.append(scope.spawn(forever()))

            waiter = asyncio.create_task(scope.wait())
            await started.wait()
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
            assert all(child.done() for child in children)
            assert all(child.cancelled() for child in children)

        asyncio.run(scenario())
