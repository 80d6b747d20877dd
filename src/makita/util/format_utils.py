"""Text helpers shared by command handlers: durations, links, invite URLs."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

import discord

INVITE_URL_TEMPLATE = (
    "https://discord.com/oauth2/authorize?client_id={client_id}"
    "&permissions=8&scope=applications.commands+bot"
)

_DURATION_UNITS = {
    "d": 24 * 60 * 60,
    "h": 60 * 60,
    "m": 60,
    "s": 1,
}


def invite_url(client_id: int) -> str:
    return INVITE_URL_TEMPLATE.format(client_id=client_id)


def parse_duration(text: str) -> Optional[timedelta]:
    """
    Parse durations such as ``"1d12h"``, ``"90m"`` or ``"30s"``.

    Each unit letter must follow at least one digit. Returns None when the text
    is malformed or too large to represent. Trailing digits without a unit are
    ignored, and an empty string is a zero duration.
    """
    seconds = 0
    digits = ""
    for char in text:
        if char.isdigit() and char.isascii():
            digits += char
            continue
        unit = _DURATION_UNITS.get(char)
        if unit is None or not digits:
            return None
        seconds += int(digits) * unit
        digits = ""
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        return None


def channel_link(guild_id: int, channel_id: int) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}"


def message_link(guild_id: int, channel_id: int, message_id: int) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}"


def link_guild(guild: discord.Guild, hint_channel_id: int) -> str:
    """
    Markdown link to a guild, pointing at a channel most members can see.

    Prefers the rules channel, then any text channel without a view-channel
    deny overwrite, then ``hint_channel_id``.
    """
    target = guild.rules_channel.id if guild.rules_channel is not None else None
    if target is None:
        for channel in guild.channels:
            overwrites = channel.overwrites.values()
            if not any(overwrite.view_channel is False for overwrite in overwrites):
                target = channel.id
                break
    if target is None:
        target = hint_channel_id
    return f"[{guild.name}]({channel_link(guild.id, target)})"


def highest_role_position(roles: Iterable[discord.Role]) -> int:
    return max((role.position for role in roles), default=0)


def discord_timestamp(unix_seconds: int, style: str = "f") -> str:
    return f"<t:{unix_seconds}:{style}>"
