"""
Reader/writer lock for asyncio.

Many readers may hold the lock together; a writer holds it alone. Waiters are
served in arrival order, so a queued writer blocks readers that arrive after it
and cannot be starved by a steady stream of reads.
"""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Deque, Tuple


class AsyncRWLock:
    """FIFO-fair asyncio reader/writer lock."""

    def __init__(self) -> None:
        self._readers = 0
        self._writer = False
        self._waiters: Deque[Tuple[bool, asyncio.Future]] = deque()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_held(self) -> bool:
        return self._writer

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    async def acquire_read(self) -> None:
        if not self._writer and not self._waiters:
            self._readers += 1
            return
        await self._wait(is_writer=False)

    async def acquire_write(self) -> None:
        if not self._writer and self._readers == 0 and not self._waiters:
            self._writer = True
            return
        await self._wait(is_writer=True)

    def release_read(self) -> None:
        if self._readers <= 0:
            raise RuntimeError("release_read() called without a held read lock")
        self._readers -= 1
        if self._readers == 0:
            self._wake()

    def release_write(self) -> None:
        if not self._writer:
            raise RuntimeError("release_write() called without a held write lock")
        self._writer = False
        self._wake()

    @asynccontextmanager
    async def read_locked(self) -> AsyncIterator[None]:
        await self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @asynccontextmanager
    async def write_locked(self) -> AsyncIterator[None]:
        await self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _wait(self, *, is_writer: bool) -> None:
        future = asyncio.get_running_loop().create_future()
        waiter = (is_writer, future)
        self._waiters.append(waiter)
        try:
            await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                # Granted right before the cancellation landed
                if is_writer:
                    self.release_write()
                else:
                    self.release_read()
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
                self._wake()
            raise

    def _wake(self) -> None:
        while self._waiters:
            is_writer, future = self._waiters[0]
            if future.done():
                self._waiters.popleft()
                continue
            if is_writer:
                if self._writer or self._readers:
                    return
                self._waiters.popleft()
                self._writer = True
                future.set_result(None)
                return
            if self._writer:
                return
            self._waiters.popleft()
            self._readers += 1
            future.set_result(None)
