"""
Per-guild preview configuration: which channels are scanned for message links
and where archived messages go.

Cached in a ``GuildCache`` keyed by guild id. Every mutation writes through to
the preview_channels / archive_channel tables while the guild's exclusive lock
is held, so concurrent commands on one guild are applied one after another.
"""

from __future__ import annotations

import asyncio
from typing import Collection, List, Optional

from makita.cache.guild_cache import GuildCache
from makita.database.db_connection import ConnectionManager, db_connection
from makita.datatypes.discord_datatypes import ChannelID, GuildID
from makita.datatypes.permission_datatypes import contains_sorted, insert_sorted, remove_sorted
from makita.datatypes.preview_datatypes import PreviewConfig
from makita.datatypes.task_datatypes import GuildDestroyed
from makita.errors import Generic
from makita.scheduler.task_broadcast import Subscription, TaskBroadcast
from makita.settings.repositories import PreviewsRepository
from makita.util.logger import get_logger

logger = get_logger("previews_manager")

previews_repo = PreviewsRepository()


class PreviewsManager:
    """Preview registry backed by the preview tables."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._connection = connection
        self._cache: GuildCache[GuildID, PreviewConfig] = GuildCache(PreviewConfig.default, name="previews")
        self._eviction_task: Optional[asyncio.Task] = None

    @property
    def cache(self) -> GuildCache[GuildID, PreviewConfig]:
        return self._cache

    @property
    def eviction_task(self) -> Optional[asyncio.Task]:
        return self._eviction_task

    # ========== Lifecycle ==========

    async def initialize(self, broadcast: TaskBroadcast) -> asyncio.Task:
        async with self._connection.read() as conn:
            channels = await previews_repo.load_channels(conn)
            archives = await previews_repo.load_archives(conn)

        for guild_id, channel_id in channels:
            await self._cache.write(guild_id, lambda config, c=channel_id: insert_sorted(config.auto_channels, c))
        for guild_id, channel_id in archives:
            await self._cache.write(guild_id, lambda config, c=channel_id: setattr(config, "archive_channel", c))

        logger.info(
            "[PREVIEWS] Loaded %d auto-scan channels and %d archive channels",
            len(channels),
            len(archives),
        )

        subscription = broadcast.subscribe("previews")
        self._eviction_task = asyncio.create_task(self._eviction_loop(subscription), name="previews-eviction")
        return self._eviction_task

    async def _eviction_loop(self, subscription: Subscription) -> None:
        try:
            async for message in subscription:
                if isinstance(message, GuildDestroyed):
                    await self._cache.evict(message.guild_id)
        finally:
            subscription.unsubscribe()
            logger.debug("[PREVIEWS] Eviction loop stopped")

    # ========== Reads ==========

    async def should_scan(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        return await self._cache.read(guild_id, lambda config: contains_sorted(config.auto_channels, channel_id))

    async def list_channels(self, guild_id: GuildID) -> List[ChannelID]:
        return await self._cache.read(guild_id, lambda config: list(config.auto_channels))

    async def get_archive(self, guild_id: GuildID) -> Optional[ChannelID]:
        return await self._cache.read(guild_id, lambda config: config.archive_channel)

    # ========== Mutations ==========

    async def add_channel(self, guild_id: GuildID, channel_id: ChannelID) -> None:
        async def apply(config: PreviewConfig) -> None:
            if not insert_sorted(config.auto_channels, channel_id):
                raise Generic("Channel already added")
            async with self._connection.transaction() as conn:
                await previews_repo.insert_channel(conn, guild_id, channel_id)

        await self._cache.write_async(guild_id, apply)
        logger.info("[PREVIEWS] Guild %s: added auto-scan channel %s", guild_id, channel_id)

    async def remove_channel(self, guild_id: GuildID, channel_id: ChannelID) -> None:
        async def apply(config: PreviewConfig) -> None:
            if not remove_sorted(config.auto_channels, channel_id):
                raise Generic("Channel not in previews")
            async with self._connection.transaction() as conn:
                await previews_repo.delete_channel(conn, guild_id, channel_id)

        await self._cache.write_async(guild_id, apply)
        logger.info("[PREVIEWS] Guild %s: removed auto-scan channel %s", guild_id, channel_id)

    async def set_archive(self, guild_id: GuildID, channel_id: Optional[ChannelID]) -> None:
        """Set the archive channel, or clear it when ``channel_id`` is None."""
        async def apply(config: PreviewConfig) -> None:
            config.archive_channel = channel_id
            async with self._connection.transaction() as conn:
                if channel_id is None:
                    await previews_repo.delete_archive(conn, guild_id)
                else:
                    await previews_repo.upsert_archive(conn, guild_id, channel_id)

        await self._cache.write_async(guild_id, apply)
        logger.info("[PREVIEWS] Guild %s: archive channel set to %s", guild_id, channel_id)

    async def channel_deleted(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        """Forget a deleted channel. Returns False (and touches nothing durable) if it was not scanned."""
        async def apply(config: PreviewConfig) -> bool:
            if not remove_sorted(config.auto_channels, channel_id):
                return False
            async with self._connection.transaction() as conn:
                await previews_repo.delete_channel(conn, guild_id, channel_id)
            return True

        removed = await self._cache.write_async(guild_id, apply)
        if removed:
            logger.info("[PREVIEWS] Guild %s: dropped deleted channel %s", guild_id, channel_id)
        return removed

    async def guild_sync(self, guild_id: GuildID, existing_channel_ids: Collection[ChannelID]) -> List[ChannelID]:
        """Drop auto-scan channels that no longer exist in the guild. Returns the removed ids."""
        existing = set(existing_channel_ids)

        async def apply(config: PreviewConfig) -> List[ChannelID]:
            stale = [c for c in config.auto_channels if c not in existing]
            if not stale:
                return stale
            config.auto_channels[:] = [c for c in config.auto_channels if c in existing]
            async with self._connection.transaction() as conn:
                await previews_repo.delete_channels(conn, guild_id, stale)
            return stale

        removed = await self._cache.write_async(guild_id, apply)
        if removed:
            logger.info("[PREVIEWS] Guild %s: removed %d stale auto-scan channels", guild_id, len(removed))
        return removed


previews_manager = PreviewsManager()
