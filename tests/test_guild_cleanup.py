"""Tests for the departed-guild sweep."""

import pytest

from makita.datatypes.permission_datatypes import PermissionType
from makita.datatypes.task_datatypes import GuildDestroyed
from makita.scheduler.guild_cleanup import GUILD_RETENTION_SECONDS, guild_cleanup
from makita.settings.permissions_manager import PermissionsManager
from makita.settings.previews_manager import PreviewsManager
from makita.settings.repositories import GuildsRepository
from helpers import spin

NOW = 1_000_000
guilds_repo = GuildsRepository()


async def register(db, *guild_ids):
    async with db.transaction() as conn:
        for guild_id in guild_ids:
            await guilds_repo.upsert_active(conn, guild_id)


@pytest.mark.asyncio
async def test_departed_guilds_are_marked_not_deleted(db, broadcast):
    await register(db, 1, 2, 3)

    report = await guild_cleanup(db, [1], broadcast, now=NOW)

    assert report.marked == [2, 3]
    assert report.destroyed == []
    async with db.read() as conn:
        rows = dict(await guilds_repo.load_all(conn))
    assert rows == {1: None, 2: NOW + GUILD_RETENTION_SECONDS, 3: NOW + GUILD_RETENTION_SECONDS}


@pytest.mark.asyncio
async def test_marked_guilds_are_not_remarked(db, broadcast):
    await register(db, 2)
    await guild_cleanup(db, [], broadcast, now=NOW)

    report = await guild_cleanup(db, [], broadcast, now=NOW + 10)

    assert report.marked == []
    async with db.read() as conn:
        assert dict(await guilds_repo.load_all(conn)) == {2: NOW + GUILD_RETENTION_SECONDS}


@pytest.mark.asyncio
async def test_expiry_is_strict(db, broadcast):
    await register(db, 2)
    await guild_cleanup(db, [], broadcast, now=NOW)

    report = await guild_cleanup(db, [], broadcast, now=NOW + GUILD_RETENTION_SECONDS)
    assert report.destroyed == []


@pytest.mark.asyncio
async def test_rejoin_clears_mark(db, broadcast):
    await register(db, 2, 3)
    await guild_cleanup(db, [], broadcast, now=NOW)
    await register(db, 2)

    report = await guild_cleanup(db, [2], broadcast, now=NOW + GUILD_RETENTION_SECONDS + 1)

    assert report.destroyed == [3]


@pytest.mark.asyncio
async def test_expired_guild_is_purged_and_evicted(db, broadcast):
    permissions = PermissionsManager(db)
    previews = PreviewsManager(db)
    permission_task = await permissions.initialize(broadcast)
    preview_task = await previews.initialize(broadcast)
    listener = broadcast.subscribe("test")

    await register(db, 3)
    await permissions.add(3, PermissionType.TIMEOUT, user_id=5)
    await previews.add_channel(3, 40)
    await previews.set_archive(3, 41)

    await guild_cleanup(db, [], broadcast, now=NOW)
    report = await guild_cleanup(db, [], broadcast, now=NOW + GUILD_RETENTION_SECONDS + 1)
    await spin()

    assert report.destroyed == [3]
    assert await listener.recv() == GuildDestroyed(3)
    assert 3 not in permissions.cache
    assert 3 not in previews.cache

    async with db.read() as conn:
        for table in ("guilds", "permissions", "archive_channel"):
            async with conn.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                assert (await cursor.fetchone())[0] == 0, table
        async with conn.execute("SELECT COUNT(*) FROM preview_channels") as cursor:
            assert (await cursor.fetchone())[0] == 0

    broadcast.close()
    await permission_task
    await preview_task
