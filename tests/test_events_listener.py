from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from makita.cog.listener import events_listener
from makita.settings.previews_manager import PreviewsManager
from makita.settings.repositories import GuildsRepository


@pytest.fixture
def wired(db, monkeypatch):
    previews = PreviewsManager(db)
    monkeypatch.setattr(events_listener, "db_connection", db)
    monkeypatch.setattr(events_listener, "previews_manager", previews)
    return previews


def make_guild(channel_ids, thread_ids=()):
    return SimpleNamespace(
        id=10,
        name="Home",
        channels=[SimpleNamespace(id=c) for c in channel_ids],
        threads=[SimpleNamespace(id=t) for t in thread_ids],
    )


@pytest.mark.asyncio
async def test_guild_available_registers_guild_and_prunes_channels(db, wired):
    for channel_id in (20, 30, 40):
        await wired.add_channel(10, channel_id)
    cog = events_listener.EventsListenerCog(SimpleNamespace())

    await cog.on_guild_available(make_guild([20], thread_ids=[40]))

    assert await wired.list_channels(10) == [20, 40]
    async with db.read() as conn:
        assert await GuildsRepository().load_all(conn) == [(10, None)]


@pytest.mark.asyncio
async def test_channel_delete_forwards_to_previews(wired):
    await wired.add_channel(10, 20)
    cog = events_listener.EventsListenerCog(SimpleNamespace())

    await cog.on_guild_channel_delete(SimpleNamespace(id=20, guild=SimpleNamespace(id=10)))

    assert await wired.list_channels(10) == []


@pytest.mark.asyncio
async def test_on_ready_sets_presence():
    bot = SimpleNamespace(user=SimpleNamespace(id=1), guilds=[], change_presence=AsyncMock())
    await events_listener.EventsListenerCog(bot).on_ready()
    activity = bot.change_presence.await_args.kwargs["activity"]
    assert activity.name == "your inner thoughts"
