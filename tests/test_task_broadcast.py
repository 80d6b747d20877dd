"""Tests for the lifecycle broadcast and periodic tasks."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from makita.datatypes.task_datatypes import GuildDestroyed, Kill
from makita.scheduler.periodic_task import PeriodicTask
from makita.scheduler.task_broadcast import TaskBroadcast
from helpers import spin


class TestTaskBroadcast:
    @pytest.mark.asyncio
    async def test_every_subscriber_gets_every_message(self):
        broadcast = TaskBroadcast()
        first = broadcast.subscribe("first")
        second = broadcast.subscribe("second")

        assert broadcast.send(GuildDestroyed(1)) == 2

        assert await first.recv() == GuildDestroyed(1)
        assert await second.recv() == GuildDestroyed(1)

    @pytest.mark.asyncio
    async def test_no_replay_for_late_subscribers(self):
        broadcast = TaskBroadcast()
        assert broadcast.send(GuildDestroyed(1)) == 0
        late = broadcast.subscribe()
        broadcast.send(GuildDestroyed(2))
        assert await late.recv() == GuildDestroyed(2)

    @pytest.mark.asyncio
    async def test_iteration_stops_at_kill(self):
        broadcast = TaskBroadcast()
        subscription = broadcast.subscribe()
        broadcast.send(GuildDestroyed(1))
        broadcast.send(GuildDestroyed(2))
        broadcast.send(Kill())
        broadcast.send(GuildDestroyed(3))

        received = [message async for message in subscription]

        assert received == [GuildDestroyed(1), GuildDestroyed(2)]
        assert subscription.finished

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_subscribers(self):
        broadcast = TaskBroadcast()
        subscription = broadcast.subscribe()
        waiter = asyncio.create_task(subscription.recv())
        await spin()

        broadcast.close()

        assert await waiter is None
        assert await subscription.recv() is None
        with pytest.raises(RuntimeError):
            broadcast.send(Kill())
        with pytest.raises(RuntimeError):
            broadcast.subscribe()

    def test_unsubscribe(self):
        broadcast = TaskBroadcast()
        subscription = broadcast.subscribe()
        subscription.unsubscribe()
        assert broadcast.receiver_count == 0
        assert broadcast.send(Kill()) == 0


class TestPeriodicTask:
    @pytest.mark.asyncio
    async def test_runs_until_kill(self):
        broadcast = TaskBroadcast()
        call = AsyncMock()
        task = PeriodicTask("test", call, 0.01, broadcast).start()

        await asyncio.sleep(0.05)
        assert call.await_count >= 1

        broadcast.send(Kill())
        await asyncio.wait_for(task, timeout=1)
        assert broadcast.receiver_count == 0

    @pytest.mark.asyncio
    async def test_kill_interrupts_wait(self):
        broadcast = TaskBroadcast()
        call = AsyncMock()
        task = PeriodicTask("test", call, 3600, broadcast).start()

        broadcast.send(GuildDestroyed(1))
        await spin()
        assert not task.done()

        broadcast.send(Kill())
        await asyncio.wait_for(task, timeout=1)
        call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_call_errors_do_not_stop_the_loop(self):
        broadcast = TaskBroadcast()
        call = AsyncMock(side_effect=RuntimeError("sweep failed"))
        task = PeriodicTask("test", call, 0.01, broadcast).start()

        await asyncio.sleep(0.08)
        assert call.await_count >= 2
        assert not task.done()

        broadcast.close()
        await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_shutdown_cancels(self):
        broadcast = TaskBroadcast()
        periodic = PeriodicTask("test", AsyncMock(), 3600, broadcast)
        periodic.start()
        await periodic.shutdown()
        assert periodic.task.done()
