"""Tests for the preview channel registry."""

import pytest

from makita.datatypes.task_datatypes import Kill
from makita.errors import Generic
from makita.settings.previews_manager import PreviewsManager

GUILD = 10


@pytest.mark.asyncio
async def test_add_list_and_should_scan(db):
    manager = PreviewsManager(db)
    await manager.add_channel(GUILD, 30)
    await manager.add_channel(GUILD, 20)

    assert await manager.list_channels(GUILD) == [20, 30]
    assert await manager.should_scan(GUILD, 20) is True
    assert await manager.should_scan(GUILD, 99) is False


@pytest.mark.asyncio
async def test_duplicate_add_and_missing_remove_fail(db):
    manager = PreviewsManager(db)
    await manager.add_channel(GUILD, 20)

    with pytest.raises(Generic, match="Channel already added"):
        await manager.add_channel(GUILD, 20)
    with pytest.raises(Generic, match="Channel not in previews"):
        await manager.remove_channel(GUILD, 21)


@pytest.mark.asyncio
async def test_archive_set_and_clear(db):
    manager = PreviewsManager(db)
    assert await manager.get_archive(GUILD) is None

    await manager.set_archive(GUILD, 50)
    assert await manager.get_archive(GUILD) == 50

    await manager.set_archive(GUILD, None)
    assert await manager.get_archive(GUILD) is None


@pytest.mark.asyncio
async def test_channel_deleted_only_touches_scanned_channels(db):
    manager = PreviewsManager(db)
    await manager.add_channel(GUILD, 20)

    assert await manager.channel_deleted(GUILD, 21) is False
    assert await manager.channel_deleted(GUILD, 20) is True
    assert await manager.list_channels(GUILD) == []


@pytest.mark.asyncio
async def test_guild_sync_drops_missing_channels_durably(db, broadcast):
    manager = PreviewsManager(db)
    for channel_id in (20, 30, 40):
        await manager.add_channel(GUILD, channel_id)
    await manager.set_archive(GUILD, 60)

    removed = await manager.guild_sync(GUILD, [30, 60, 70])

    assert removed == [20, 40]
    assert await manager.list_channels(GUILD) == [30]

    reloaded = PreviewsManager(db)
    task = await reloaded.initialize(broadcast)
    assert await reloaded.list_channels(GUILD) == [30]
    assert await reloaded.get_archive(GUILD) == 60
    broadcast.send(Kill())
    await task


@pytest.mark.asyncio
async def test_guild_sync_without_stale_channels_is_noop(db):
    manager = PreviewsManager(db)
    await manager.add_channel(GUILD, 20)
    assert await manager.guild_sync(GUILD, [20]) == []
