"""
Per-guild permission registry.

Answers "may this member use a command gated by permission X?" and owns the
grant data behind the ``/permissions`` commands:

- check(kind, guild_id, owner_id, user_id, roles): None if allowed, else the kind
- set / set_native / add / remove: mutate one record and persist it
- snapshot(guild_id, kind): copy of a record for display
- sudo_users / add_sudo / remove_sudo: operator bypass, memory only

Records are cached in a ``GuildCache`` keyed by guild id and written through to
the permissions table inside the same exclusive section.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, List, Optional, Sequence, Set

import discord

from makita.cache.guild_cache import GuildCache
from makita.database.db_connection import ConnectionManager, db_connection
from makita.datatypes.discord_datatypes import GuildID, RoleID, UserID
from makita.datatypes.permission_datatypes import (
    GuildPermissionEntry,
    PermissionRecord,
    PermissionType,
    RemovalResult,
    insert_sorted,
    remove_sorted,
)
from makita.datatypes.task_datatypes import GuildDestroyed
from makita.errors import BotError, Generic
from makita.scheduler.task_broadcast import Subscription, TaskBroadcast
from makita.settings.repositories import PermissionRow, PermissionsRepository
from makita.util.logger import get_logger

logger = get_logger("permissions_manager")

permissions_repo = PermissionsRepository()


def _role_bits(role: discord.Role) -> int:
    permissions = role.permissions
    return permissions if isinstance(permissions, int) else permissions.value


class PermissionsManager:
    """Permission registry backed by the permissions table."""

    def __init__(self, connection: ConnectionManager = db_connection) -> None:
        self._connection = connection
        self._cache: GuildCache[GuildID, GuildPermissionEntry] = GuildCache(
            GuildPermissionEntry.default, name="permissions"
        )
        self.sudo_users: Set[UserID] = set()
        self._eviction_task: Optional[asyncio.Task] = None

    @property
    def cache(self) -> GuildCache[GuildID, GuildPermissionEntry]:
        return self._cache

    @property
    def eviction_task(self) -> Optional[asyncio.Task]:
        return self._eviction_task

    # ========== Lifecycle ==========

    async def initialize(self, broadcast: TaskBroadcast) -> asyncio.Task:
        """Load every stored record, then start listening for guild eviction."""
        async with self._connection.read() as conn:
            rows = await permissions_repo.load_all(conn)
        await self.hydrate(rows)
        logger.info("[PERMISSIONS] Loaded %d permission rows for %d guilds", len(rows), len(self._cache))

        subscription = broadcast.subscribe("permissions")
        self._eviction_task = asyncio.create_task(
            self._eviction_loop(subscription), name="permissions-eviction"
        )
        return self._eviction_task

    async def hydrate(self, rows: Iterable[PermissionRow]) -> None:
        """Overwrite cached records from stored rows. Start-up only; nothing is persisted."""
        for row in rows:
            try:
                kind = PermissionType.from_string(row.kind)
            except BotError:
                logger.warning("[PERMISSIONS] Skipping row with unknown type %r for guild %s", row.kind, row.guild_id)
                continue

            def apply(entry: GuildPermissionEntry, kind=kind, row=row) -> None:
                entry.records[kind] = PermissionRecord(
                    native=row.native,
                    roles=sorted(set(row.roles)),
                    users=sorted(set(row.users)),
                )

            await self._cache.write(row.guild_id, apply)

    async def _eviction_loop(self, subscription: Subscription) -> None:
        try:
            async for message in subscription:
                if isinstance(message, GuildDestroyed):
                    await self._cache.evict(message.guild_id)
        finally:
            subscription.unsubscribe()
            logger.debug("[PERMISSIONS] Eviction loop stopped")

    # ========== Checks ==========

    async def check(
        self,
        kind: PermissionType,
        guild_id: GuildID,
        owner_id: UserID,
        user_id: UserID,
        roles: Sequence[discord.Role],
    ) -> Optional[PermissionType]:
        """
        Decide whether a member holds ``kind`` in a guild.

        Returns None when allowed and ``kind`` when denied. Sudo users and the
        guild owner are allowed without consulting the cache. Otherwise an
        Administrator grant implies every kind.
        """
        if user_id in self.sudo_users:
            return None
        if user_id == owner_id:
            return None

        combined = 0
        for role in roles:
            combined |= _role_bits(role)
        role_ids = [role.id for role in roles]

        def decide(entry: GuildPermissionEntry) -> Optional[PermissionType]:
            if entry.get(PermissionType.ADMINISTRATOR).is_satisfied(combined, user_id, role_ids):
                return None
            if entry.get(kind).is_satisfied(combined, user_id, role_ids):
                return None
            return kind

        return await self._cache.read(guild_id, decide)

    async def snapshot(self, guild_id: GuildID, kind: PermissionType) -> PermissionRecord:
        return await self._cache.read(guild_id, lambda entry: entry.get(kind).copy())

    # ========== Mutations ==========

    async def set(
        self,
        guild_id: GuildID,
        kind: PermissionType,
        mutator: Callable[[PermissionRecord], None],
    ) -> None:
        """
        Mutate one record and upsert its row under the guild's exclusive lock.

        A failed upsert propagates; the in-memory change is kept.
        """
        async def apply(entry: GuildPermissionEntry) -> None:
            record = entry.get(kind)
            mutator(record)
            async with self._connection.transaction() as conn:
                await permissions_repo.upsert(conn, guild_id, kind, record)

        await self._cache.write_async(guild_id, apply)
        logger.debug("[PERMISSIONS] Updated %s for guild %s", kind.value, guild_id)

    async def set_native(self, guild_id: GuildID, kind: PermissionType, bits: int) -> None:
        def apply(record: PermissionRecord) -> None:
            record.native = bits

        await self.set(guild_id, kind, apply)

    async def add(
        self,
        guild_id: GuildID,
        kind: PermissionType,
        *,
        user_id: Optional[UserID] = None,
        role_id: Optional[RoleID] = None,
    ) -> None:
        """Grant ``kind`` to a user and/or a role. Already present ids are left alone."""
        if user_id is None and role_id is None:
            raise Generic("Must specify either `user` or `role`")

        def apply(record: PermissionRecord) -> None:
            if user_id is not None:
                insert_sorted(record.users, user_id)
            if role_id is not None:
                insert_sorted(record.roles, role_id)

        await self.set(guild_id, kind, apply)

    async def remove(
        self,
        guild_id: GuildID,
        kind: PermissionType,
        *,
        user_id: Optional[UserID] = None,
        role_id: Optional[RoleID] = None,
    ) -> RemovalResult:
        """
        Revoke grants. The user and role removals are independent: one may
        succeed while the other reports not found.
        """
        if user_id is None and role_id is None:
            raise Generic("Must specify either `user` or `role`")

        result = RemovalResult()

        def apply(record: PermissionRecord) -> None:
            if user_id is not None:
                result.user_found = remove_sorted(record.users, user_id)
            if role_id is not None:
                result.role_found = remove_sorted(record.roles, role_id)

        await self.set(guild_id, kind, apply)
        return result

    # ========== Sudo ==========

    def add_sudo(self, user_id: UserID) -> bool:
        if user_id in self.sudo_users:
            return False
        self.sudo_users.add(user_id)
        logger.info("[PERMISSIONS] Added sudo user %s", user_id)
        return True

    def remove_sudo(self, user_id: UserID) -> bool:
        if user_id not in self.sudo_users:
            return False
        self.sudo_users.discard(user_id)
        logger.info("[PERMISSIONS] Removed sudo user %s", user_id)
        return True

    def list_sudo(self) -> List[UserID]:
        return sorted(self.sudo_users)


permissions_manager = PermissionsManager()
