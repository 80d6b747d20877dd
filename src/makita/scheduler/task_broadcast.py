"""
In-process fan-out channel for lifecycle messages.

Every subscriber gets its own unbounded queue, so a slow subscriber never makes
``send`` block or drop messages for others. Messages sent before a subscription
existed are not replayed to it.

Usage::

    broadcast = TaskBroadcast()
    subscription = broadcast.subscribe("permissions")

    async for message in subscription:      # ends on Kill or close()
        if isinstance(message, GuildDestroyed):
            ...

    broadcast.send(Kill())
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional

from makita.datatypes.task_datatypes import Kill, TaskMessage
from makita.util.logger import get_logger

logger = get_logger("task_broadcast")


class Subscription:
    """Receiving end handed out by ``TaskBroadcast.subscribe``."""

    def __init__(self, broadcast: "TaskBroadcast", name: str) -> None:
        self._broadcast = broadcast
        self._queue: asyncio.Queue[Optional[TaskMessage]] = asyncio.Queue()
        self._finished = False
        self.name = name

    @property
    def finished(self) -> bool:
        """True once a Kill was received or the broadcast was closed."""
        return self._finished

    def _deliver(self, message: Optional[TaskMessage]) -> None:
        self._queue.put_nowait(message)

    async def recv(self) -> Optional[TaskMessage]:
        """Next message, or None once the broadcast is closed."""
        if self._finished and self._queue.empty():
            return None
        message = await self._queue.get()
        if message is None or isinstance(message, Kill):
            self._finished = True
        return message

    def unsubscribe(self) -> None:
        self._broadcast._remove(self)
        self._finished = True

    def __aiter__(self) -> AsyncIterator[TaskMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[TaskMessage]:
        while True:
            message = await self.recv()
            if message is None or isinstance(message, Kill):
                return
            yield message


class TaskBroadcast:
    """Multi-producer, multi-consumer broadcast of ``TaskMessage`` values."""

    def __init__(self) -> None:
        self._subscribers: List[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def receiver_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, name: str = "subscriber") -> Subscription:
        if self._closed:
            raise RuntimeError("Cannot subscribe to a closed TaskBroadcast")
        subscription = Subscription(self, name)
        self._subscribers.append(subscription)
        logger.debug("[TASK BROADCAST] %s subscribed (%d receivers)", name, len(self._subscribers))
        return subscription

    def send(self, message: TaskMessage) -> int:
        """Deliver ``message`` to every current subscriber. Returns the receiver count."""
        if self._closed:
            raise RuntimeError("Cannot send on a closed TaskBroadcast")
        for subscription in self._subscribers:
            subscription._deliver(message)
        logger.debug("[TASK BROADCAST] Sent %r to %d receivers", message, len(self._subscribers))
        return len(self._subscribers)

    def close(self) -> None:
        """Wake every subscriber with end-of-stream; later sends raise."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscribers:
            subscription._deliver(None)
        self._subscribers.clear()

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscribers.remove(subscription)
        except ValueError:
            pass
