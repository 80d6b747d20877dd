"""
Repository for the preview_channels and archive_channel tables.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

import aiosqlite

from makita.datatypes.discord_datatypes import ChannelID, GuildID, from_sql_id, to_sql_id, to_sql_ids


class PreviewsRepository:
    """CRUD for auto-scan channels and archive channels."""

    async def load_channels(self, conn: aiosqlite.Connection) -> List[Tuple[GuildID, ChannelID]]:
        async with conn.execute("SELECT guild_id, channel_id FROM preview_channels") as cursor:
            rows = await cursor.fetchall()
        return [(from_sql_id(g), from_sql_id(c)) for g, c in rows]

    async def load_archives(self, conn: aiosqlite.Connection) -> List[Tuple[GuildID, ChannelID]]:
        async with conn.execute("SELECT guild_id, channel_id FROM archive_channel") as cursor:
            rows = await cursor.fetchall()
        return [(from_sql_id(g), from_sql_id(c)) for g, c in rows]

    async def insert_channel(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> None:
        await conn.execute(
            "INSERT OR IGNORE INTO preview_channels (guild_id, channel_id) VALUES (?, ?)",
            (to_sql_id(guild_id), to_sql_id(channel_id)),
        )

    async def delete_channel(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> None:
        await conn.execute(
            "DELETE FROM preview_channels WHERE guild_id = ? AND channel_id = ?",
            (to_sql_id(guild_id), to_sql_id(channel_id)),
        )

    async def delete_channels(
        self, conn: aiosqlite.Connection, guild_id: GuildID, channel_ids: Iterable[ChannelID]
    ) -> None:
        gid = to_sql_id(guild_id)
        await conn.executemany(
            "DELETE FROM preview_channels WHERE guild_id = ? AND channel_id = ?",
            [(gid, cid) for cid in to_sql_ids(channel_ids)],
        )

    async def upsert_archive(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> None:
        await conn.execute(
            "INSERT INTO archive_channel (guild_id, channel_id) VALUES (?, ?) "
            "ON CONFLICT(guild_id) DO UPDATE SET channel_id = excluded.channel_id",
            (to_sql_id(guild_id), to_sql_id(channel_id)),
        )

    async def delete_archive(self, conn: aiosqlite.Connection, guild_id: GuildID) -> None:
        await conn.execute("DELETE FROM archive_channel WHERE guild_id = ?", (to_sql_id(guild_id),))

    async def delete_for_guilds(self, conn: aiosqlite.Connection, guild_ids: List[GuildID]) -> None:
        if not guild_ids:
            return
        placeholders = ",".join("?" * len(guild_ids))
        sql_ids = to_sql_ids(guild_ids)
        await conn.execute(f"DELETE FROM preview_channels WHERE guild_id IN ({placeholders})", sql_ids)
        await conn.execute(f"DELETE FROM archive_channel WHERE guild_id IN ({placeholders})", sql_ids)
