"""Tests for automatic link previews."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from makita.cog.listener import message_listener
from makita.errors import NotFound
from makita.previews.preview_builder import Preview


def make_message(content, *, bot=False, guild=True):
    return SimpleNamespace(
        id=1,
        content=content,
        author=SimpleNamespace(id=100, bot=bot),
        guild=SimpleNamespace(id=10) if guild else None,
        channel=SimpleNamespace(id=20, send=AsyncMock()),
    )


def test_should_process_message_filters_dms_and_bots():
    assert message_listener.should_process_message(make_message("x"))
    assert not message_listener.should_process_message(make_message("x", bot=True))
    assert not message_listener.should_process_message(make_message("x", guild=False))


@pytest.mark.asyncio
async def test_failed_link_does_not_stop_later_links(monkeypatch):
    preview = Preview(embeds=[])
    resolve = AsyncMock(side_effect=[NotFound("Message"), preview])
    send = AsyncMock()
    monkeypatch.setattr(message_listener, "resolve_preview", resolve)
    monkeypatch.setattr(message_listener, "send_preview", send)

    cog = message_listener.MessageListenerCog(SimpleNamespace())
    message = make_message("https://discord.com/channels/1/2/3 https://discord.com/channels/1/2/4")

    assert await cog.scan_message(message) == 1
    assert resolve.await_count == 2
    send.assert_awaited_once_with(message.channel.send, preview)


@pytest.mark.asyncio
async def test_out_of_range_link_is_skipped(monkeypatch):
    resolve = AsyncMock(return_value=Preview(embeds=[]))
    monkeypatch.setattr(message_listener, "resolve_preview", resolve)
    monkeypatch.setattr(message_listener, "send_preview", AsyncMock())

    cog = message_listener.MessageListenerCog(SimpleNamespace())
    huge = str(1 << 64)
    message = make_message(f"https://discord.com/channels/{huge}/2/3 https://discord.com/channels/1/2/4")

    assert await cog.scan_message(message) == 1


@pytest.mark.asyncio
async def test_on_message_respects_channel_list(monkeypatch):
    should_scan = AsyncMock(return_value=False)
    monkeypatch.setattr(message_listener.previews_manager, "should_scan", should_scan)
    cog = message_listener.MessageListenerCog(SimpleNamespace())
    cog.scan_message = AsyncMock()

    await cog.on_message(make_message("https://discord.com/channels/1/2/3"))

    should_scan.assert_awaited_once_with(10, 20)
    cog.scan_message.assert_not_awaited()
