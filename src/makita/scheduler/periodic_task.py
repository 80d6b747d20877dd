"""Background task that runs a coroutine on a fixed interval until Kill."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from makita.datatypes.task_datatypes import Kill
from makita.scheduler.task_broadcast import Subscription, TaskBroadcast
from makita.util.logger import get_logger

logger = get_logger("periodic_task")


class PeriodicTask:
    """
    Wait ``interval`` seconds, run ``call()``, repeat.

    The wait ends early and the loop exits when a ``Kill`` arrives on the
    broadcast (or it is closed). Other broadcast messages are ignored and do not
    reset the timer. Errors raised by ``call`` are logged and the loop goes on.

    Args:
        name: Label used in log lines.
        call: Zero-argument coroutine function.
        interval: Seconds between runs.
        broadcast: Lifecycle broadcast to listen on for ``Kill``.
    """

    def __init__(
        self,
        name: str,
        call: Callable[[], Awaitable[Any]],
        interval: float,
        broadcast: TaskBroadcast,
    ) -> None:
        self._name = name
        self._call = call
        self._interval = interval
        self._broadcast = broadcast
        self._task: Optional[asyncio.Task] = None

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    async def _wait_for_tick(self, subscription: Subscription) -> bool:
        """Return True when the interval elapsed, False when the loop must stop."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._interval
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return True
            try:
                message = await asyncio.wait_for(subscription.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                return True
            if message is None or isinstance(message, Kill):
                return False

    async def _run_loop(self, subscription: Subscription) -> None:
        logger.info("[%s] Started (interval=%.0fs)", self._name, self._interval)
        try:
            while await self._wait_for_tick(subscription):
                try:
                    await self._call()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("[%s] Run failed", self._name)
        finally:
            subscription.unsubscribe()
            logger.info("[%s] Stopped", self._name)

    def start(self) -> asyncio.Task:
        if self._task and not self._task.done():
            logger.warning("[%s] Already running", self._name)
            return self._task
        # Subscribe before scheduling so a Kill sent right after start() is seen
        subscription = self._broadcast.subscribe(self._name)
        self._task = asyncio.create_task(self._run_loop(subscription), name=f"periodic:{self._name}")
        return self._task

    async def shutdown(self) -> None:
        """Cancel the loop if it is still running and wait for it."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("[%s] Shutdown complete", self._name)
