"""Tests for GuildCache lazy population and write serialisation."""

import asyncio

import pytest

from makita.cache.guild_cache import GuildCache
from helpers import spin


def counter(key):
    return {"key": key, "count": 0}


@pytest.mark.asyncio
async def test_read_miss_populates_default():
    cache = GuildCache(counter, name="test")

    count = await cache.read(7, lambda value: value["count"])

    assert count == 0
    assert 7 in cache
    assert cache.keys() == [7]


@pytest.mark.asyncio
async def test_existing_entry_is_not_rebuilt():
    built = []

    def default(key):
        built.append(key)
        return counter(key)

    cache = GuildCache(default)
    await cache.write(1, lambda value: value.update(count=5))
    assert await cache.read(1, lambda value: value["count"]) == 5
    assert built == [1]


@pytest.mark.asyncio
async def test_concurrent_async_writes_are_serialised():
    cache = GuildCache(counter)

    async def increment(value):
        current = value["count"]
        await asyncio.sleep(0)
        value["count"] = current + 1

    await asyncio.gather(*(cache.write_async(3, increment) for _ in range(50)))

    assert await cache.read(3, lambda value: value["count"]) == 50


@pytest.mark.asyncio
async def test_write_async_failure_on_miss_still_inserts():
    cache = GuildCache(counter)

    async def fail_after_change(value):
        value["count"] = 9
        raise RuntimeError("store failed")

    with pytest.raises(RuntimeError, match="store failed"):
        await cache.write_async(4, fail_after_change)

    assert await cache.read(4, lambda value: value["count"]) == 9


@pytest.mark.asyncio
async def test_write_returns_mutator_result():
    cache = GuildCache(counter)
    assert await cache.write(2, lambda value: "done") == "done"
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_evict_and_clear():
    cache = GuildCache(counter)
    await cache.write(1, lambda value: None)
    await cache.write(2, lambda value: None)

    assert await cache.evict(1) is True
    assert await cache.evict(1) is False
    assert 1 not in cache

    await cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [0, 1, 500])
async def test_concurrent_writes_count_exactly(n):
    cache = GuildCache(counter)

    def increment(value):
        value["count"] += 1

    await asyncio.gather(*(cache.write(8, increment) for _ in range(n)))

    assert await cache.read(8, lambda value: value["count"]) == n


@pytest.mark.asyncio
async def test_read_miss_keeps_value_inserted_by_concurrent_writer():
    built = []

    def default(key):
        built.append(key)
        return counter(key)

    cache = GuildCache(default)
    gate = asyncio.Event()

    async def hold(value):
        await gate.wait()

    async def set_count(value):
        value["count"] = 42

    holder = asyncio.create_task(cache.write_async(99, hold))
    await spin()
    reader = asyncio.create_task(cache.read(5, lambda value: value["count"]))
    await spin()
    writer = asyncio.create_task(cache.write_async(5, set_count))
    await spin()

    # The reader misses and builds its own default; the queued writer populates
    # the key before the reader gets the exclusive lock back.
    gate.set()
    await asyncio.gather(holder, writer)

    assert await reader == 0
    assert built == [99, 5, 5]
    assert await cache.read(5, lambda value: value["count"]) == 42
