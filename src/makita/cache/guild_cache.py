"""
Generic per-guild cache with lazy default population.

Absence of a key means "not loaded yet", never "known empty": the first read or
write of a key synthesizes ``default(key)`` and inserts it. Nothing here talks
to the database; modules pair a ``write_async`` mutation with their own
persistence call so memory and storage change under one held lock.

Usage::

    cache = GuildCache(PreviewConfig.default, name="previews")
    channels = await cache.read(guild_id, lambda config: list(config.auto_channels))
    await cache.write(guild_id, lambda config: config.auto_channels.append(channel_id))

    async def persist(config):
        config.archive_channel = channel_id
        await repo.set_archive(conn, guild_id, channel_id)

    await cache.write_async(guild_id, persist)
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Generic, Hashable, List, TypeVar

from makita.cache.rw_lock import AsyncRWLock
from makita.util.logger import get_logger

logger = get_logger("guild_cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
R = TypeVar("R")


class GuildCache(Generic[K, V]):
    """
    Concurrent mapping from key to a module-specific value.

    * ``read``  - shared lock; populates with the default on a miss, keeping
      any value a concurrent writer inserted first.
    * ``write`` - exclusive lock for synthesis, mutation and insert.
    * ``write_async`` - like ``write`` but the mutator is awaited while the
      exclusive lock is held.
    """

    def __init__(self, default: Callable[[K], V], *, name: str = "cache") -> None:
        self._default = default
        self._entries: Dict[K, V] = {}
        self._lock = AsyncRWLock()
        self.name = name

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> List[K]:
        return list(self._entries)

    async def read(self, key: K, viewer: Callable[[V], R]) -> R:
        """
        Call ``viewer`` on the cached value for ``key`` and return its result.

        On a miss the shared lock is released, the default is built and viewed,
        then inserted under the exclusive lock. If another task populated the
        key in the meantime its value is kept and ours is discarded; the viewer
        result computed from ours is still returned.
        """
        async with self._lock.read_locked():
            if key in self._entries:
                return viewer(self._entries[key])

        value = self._default(key)
        result = viewer(value)
        async with self._lock.write_locked():
            if key not in self._entries:
                self._entries[key] = value
        return result

    async def write(self, key: K, mutator: Callable[[V], R]) -> R:
        """Apply ``mutator`` in place under the exclusive lock, populating on a miss."""
        async with self._lock.write_locked():
            value = self._entries.get(key)
            if value is None:
                value = self._default(key)
                result = mutator(value)
                self._entries[key] = value
                return result
            return mutator(value)

    async def write_async(self, key: K, mutator: Callable[[V], Awaitable[R]]) -> R:
        """
        Await ``mutator`` under the exclusive lock, populating on a miss.

        If the mutator raises after changing a freshly synthesized value, the
        value is still inserted so memory reflects whatever was applied.
        """
        async with self._lock.write_locked():
            value = self._entries.get(key)
            if value is not None:
                return await mutator(value)

            value = self._default(key)
            try:
                return await mutator(value)
            finally:
                self._entries[key] = value

    async def evict(self, key: K) -> bool:
        """Drop the entry for ``key``. Returns True if one existed."""
        async with self._lock.write_locked():
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug("[GUILD CACHE] %s: evicted %s", self.name, key)
        return removed

    async def clear(self) -> None:
        async with self._lock.write_locked():
            self._entries.clear()
