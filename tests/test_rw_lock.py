"""Tests for the FIFO reader/writer lock."""

import asyncio

import pytest

from makita.cache.rw_lock import AsyncRWLock
from helpers import spin


@pytest.mark.asyncio
async def test_readers_share_the_lock():
    lock = AsyncRWLock()
    await lock.acquire_read()
    await lock.acquire_read()
    assert lock.readers == 2
    assert not lock.write_held
    lock.release_read()
    lock.release_read()
    assert lock.readers == 0


@pytest.mark.asyncio
async def test_writer_waits_for_readers_and_blocks_later_readers():
    lock = AsyncRWLock()
    await lock.acquire_read()

    writer = asyncio.create_task(lock.acquire_write())
    await spin()
    late_reader = asyncio.create_task(lock.acquire_read())
    await spin()

    assert not writer.done()
    assert not late_reader.done(), "a reader arriving after a queued writer must wait"

    lock.release_read()
    await spin()
    assert writer.done()
    assert lock.write_held
    assert not late_reader.done()

    lock.release_write()
    await spin()
    assert late_reader.done()
    assert lock.readers == 1


@pytest.mark.asyncio
async def test_cancelled_writer_leaves_the_queue():
    lock = AsyncRWLock()
    await lock.acquire_read()

    writer = asyncio.create_task(lock.acquire_write())
    await spin()
    reader = asyncio.create_task(lock.acquire_read())
    await spin()
    assert not reader.done()

    writer.cancel()
    await spin()

    assert writer.cancelled()
    assert reader.done()
    assert lock.readers == 2
    assert not lock.write_held


@pytest.mark.asyncio
async def test_write_locked_context_releases_on_error():
    lock = AsyncRWLock()
    with pytest.raises(RuntimeError, match="boom"):
        async with lock.write_locked():
            raise RuntimeError("boom")
    assert not lock.write_held
    async with lock.read_locked():
        assert lock.readers == 1


def test_release_without_acquire_raises():
    lock = AsyncRWLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
