"""
Repository for the permissions table.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List

import aiosqlite

from makita.datatypes.discord_datatypes import (
    GuildID,
    from_sql_id,
    from_sql_ids,
    to_sql_id,
    to_sql_ids,
)
from makita.datatypes.permission_datatypes import PermissionRecord, PermissionType


@dataclass(slots=True)
class PermissionRow:
    """One decoded row; ``kind`` stays a string until the registry validates it."""

    guild_id: GuildID
    kind: str
    native: int
    roles: List[int]
    users: List[int]


class PermissionsRepository:
    """CRUD for the permissions table."""

    async def load_all(self, conn: aiosqlite.Connection) -> List[PermissionRow]:
        async with conn.execute(
            "SELECT guild_id, type, overwrites, roles, users FROM permissions"
        ) as cursor:
            rows = await cursor.fetchall()

        return [
            PermissionRow(
                guild_id=from_sql_id(guild_id),
                kind=kind,
                native=int(overwrites),
                roles=from_sql_ids(json.loads(roles or "[]")),
                users=from_sql_ids(json.loads(users or "[]")),
            )
            for guild_id, kind, overwrites, roles, users in rows
        ]

    async def upsert(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        kind: PermissionType,
        record: PermissionRecord,
    ) -> None:
        await conn.execute(
            """
            INSERT INTO permissions (guild_id, type, overwrites, roles, users)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, type) DO UPDATE SET
                overwrites = excluded.overwrites,
                roles = excluded.roles,
                users = excluded.users
            """,
            (
                to_sql_id(guild_id),
                kind.value,
                record.native,
                json.dumps(to_sql_ids(record.roles)),
                json.dumps(to_sql_ids(record.users)),
            ),
        )

    async def delete_for_guilds(self, conn: aiosqlite.Connection, guild_ids: List[GuildID]) -> None:
        if not guild_ids:
            return
        placeholders = ",".join("?" * len(guild_ids))
        await conn.execute(
            f"DELETE FROM permissions WHERE guild_id IN ({placeholders})",
            to_sql_ids(guild_ids),
        )
