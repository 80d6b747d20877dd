"""Async-safe per-guild caches."""

from makita.cache.guild_cache import GuildCache
from makita.cache.rw_lock import AsyncRWLock

__all__ = ["GuildCache", "AsyncRWLock"]
