"""
Repository for the guilds table.

A row with a NULL expiration is a guild the bot is currently in. The daily
sweep stamps an expiration on guilds the bot has left and later purges them.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import aiosqlite

from makita.datatypes.discord_datatypes import GuildID, from_sql_id, to_sql_id, to_sql_ids


def _placeholders(count: int) -> str:
    return ",".join("?" * count)


class GuildsRepository:
    """CRUD for the guilds table."""

    async def upsert_active(self, conn: aiosqlite.Connection, guild_id: GuildID) -> None:
        """Insert the guild or clear a pending expiration."""
        await conn.execute(
            "INSERT INTO guilds (id, expiration) VALUES (?, NULL) "
            "ON CONFLICT(id) DO UPDATE SET expiration = NULL",
            (to_sql_id(guild_id),),
        )

    async def load_all(self, conn: aiosqlite.Connection) -> List[Tuple[GuildID, Optional[int]]]:
        async with conn.execute("SELECT id, expiration FROM guilds ORDER BY id") as cursor:
            rows = await cursor.fetchall()
        return [(from_sql_id(row[0]), row[1]) for row in rows]

    async def unmarked_guild_ids(self, conn: aiosqlite.Connection) -> List[GuildID]:
        async with conn.execute("SELECT id FROM guilds WHERE expiration IS NULL") as cursor:
            rows = await cursor.fetchall()
        return [from_sql_id(row[0]) for row in rows]

    async def set_expiration(
        self, conn: aiosqlite.Connection, guild_ids: Iterable[GuildID], expiration: int
    ) -> None:
        await conn.executemany(
            "UPDATE guilds SET expiration = ? WHERE id = ?",
            [(expiration, sql_id) for sql_id in to_sql_ids(guild_ids)],
        )

    async def expired_guild_ids(self, conn: aiosqlite.Connection, now: int) -> List[GuildID]:
        async with conn.execute(
            "SELECT id FROM guilds WHERE expiration IS NOT NULL AND expiration < ?",
            (now,),
        ) as cursor:
            rows = await cursor.fetchall()
        return [from_sql_id(row[0]) for row in rows]

    async def delete(self, conn: aiosqlite.Connection, guild_ids: List[GuildID]) -> None:
        if not guild_ids:
            return
        await conn.execute(
            f"DELETE FROM guilds WHERE id IN ({_placeholders(len(guild_ids))})",
            to_sql_ids(guild_ids),
        )
