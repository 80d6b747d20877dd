"""
Building and sending message previews.

``resolve_preview`` checks that the requester may see the linked message,
fetches it and turns it into embeds plus re-uploadable attachments.
``send_preview`` delivers the result through any ``send`` coroutine (a channel,
an interaction follow-up), ten embeds per message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

import discord

from makita.datatypes.discord_datatypes import mention_channel, mention_user
from makita.datatypes.preview_datatypes import MessageLink
from makita.errors import CacheMissing, Generic, NotFound
from makita.util.format_utils import discord_timestamp, link_guild, message_link
from makita.util.logger import get_logger
from makita.util.responses import MAX_EMBEDS_PER_MESSAGE, ZERO_WIDTH_SPACE, chunk_embeds

logger = get_logger("preview_builder")

# Largest attachment we re-upload, just under the 8 MiB upload cap
MAX_ATTACHMENT_BYTES = 8388246
MAX_FILES_PER_MESSAGE = 10

MT = discord.MessageType

_GROUP_TYPES = {
    MT.recipient_add,
    MT.recipient_remove,
    MT.call,
    MT.channel_name_change,
    MT.channel_icon_change,
}

_UNSUPPORTED_TYPES = {
    MT.guild_invite_reminder,
    MT.guild_discovery_grace_period_initial_warning,
    MT.guild_discovery_grace_period_final_warning,
    MT.thread_starter_message,
    MT.context_menu_command,
}

_BOOST_TYPES = {
    MT.premium_guild_subscription,
    MT.premium_guild_tier_1,
    MT.premium_guild_tier_2,
    MT.premium_guild_tier_3,
}

_AUTHOR_TYPES = {
    MT.default,
    MT.pins_add,
    MT.new_member,
    MT.channel_follow_add,
    MT.thread_created,
    MT.reply,
    MT.application_command,
} | _BOOST_TYPES

_STANDARD_TYPES = {MT.default, MT.reply, MT.application_command}

_TIMESTAMP_TYPES = {
    MT.default,
    MT.reply,
    MT.pins_add,
    MT.channel_follow_add,
    MT.thread_created,
} | _BOOST_TYPES

_BOOST_TIERS = {
    MT.premium_guild_tier_1: ", achieving tier 1",
    MT.premium_guild_tier_2: ", achieving tier 2",
    MT.premium_guild_tier_3: ", achieving tier 3",
}


@dataclass(slots=True)
class Preview:
    embeds: List[discord.Embed]
    attachments: List[discord.Attachment] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


async def _resolve_member(guild: discord.Guild, user_id: int) -> discord.Member:
    member = guild.get_member(user_id)
    if member is not None:
        return member
    try:
        return await guild.fetch_member(user_id)
    except discord.HTTPException:
        raise Generic("You must be in a server to preview messages from it") from None


async def resolve_preview(
    bot: discord.Bot,
    requester_id: int,
    requester_guild_id: Optional[int],
    link: MessageLink,
) -> Preview:
    """
    Load the linked message on behalf of ``requester_id``.

    Raises:
        NotFound: the bot is not in the guild, or the message is gone.
        Generic: the requester is not a member or cannot read the channel history.
        CacheMissing: the channel is not in the gateway cache.
    """
    guild = bot.get_guild(link.guild_id)
    if guild is None:
        raise NotFound("Server")

    member = await _resolve_member(guild, requester_id)

    channel = guild.get_channel_or_thread(link.channel_id)
    if channel is None:
        raise CacheMissing()

    is_admin = any(role.permissions.administrator for role in member.roles)
    if not is_admin and not channel.permissions_for(member).read_message_history:
        raise Generic("You do not have permission to view this message")

    if not isinstance(channel, discord.abc.Messageable):
        raise NotFound("Message")
    try:
        message = await channel.fetch_message(link.message_id)
    except discord.HTTPException:
        raise NotFound("Message") from None

    foreign = requester_guild_id != guild.id
    embeds = [derive_embed(bot, message, guild, foreign)]
    embeds.extend(copy_embed(embed) for embed in message.embeds)
    attachments = [a for a in message.attachments if a.size < MAX_ATTACHMENT_BYTES]
    return Preview(embeds=embeds, attachments=attachments)


# ---------------------------------------------------------------------------
# Embed derivation
# ---------------------------------------------------------------------------


def _author_name(user: discord.abc.User) -> str:
    if user.discriminator in ("0", "0000"):
        return user.name
    return f"{user.name}#{user.discriminator}"


def _reference_link(guild: discord.Guild, reference: discord.MessageReference) -> str:
    guild_id = reference.guild_id or guild.id
    if reference.message_id is None:
        return f"https://discord.com/channels/{guild_id}/{reference.channel_id}"
    return message_link(guild_id, reference.channel_id, reference.message_id)


def derive_embed(
    bot: discord.Bot,
    message: discord.Message,
    guild: discord.Guild,
    foreign: bool,
) -> discord.Embed:
    """Summary embed for ``message``; ``foreign`` adds a link back to its guild."""
    kind = message.type
    flags = message.flags
    author = mention_user(message.author.id)
    channel = mention_channel(message.channel.id)
    guild_link = link_guild(guild, message.channel.id) if foreign else ""
    location = f"{channel} in {guild_link}" if foreign else channel
    reference = message.reference

    embed = discord.Embed(description=ZERO_WIDTH_SPACE)

    if kind in _GROUP_TYPES:
        logger.warning("[PREVIEWS] Group-only message type %s seen at %s", kind, message.jump_url)
        embed.description = (
            "This is awkward... I shouldn't be able to see this message, yet I do. "
            "How will I resolve this paradox?"
        )
        return embed

    if kind in _UNSUPPORTED_TYPES:
        logger.warning("[PREVIEWS] Unsupported message type %s seen at %s", kind, message.jump_url)
        embed.description = "Unsupported message type. This incident has been reported."
        return embed

    if kind in _AUTHOR_TYPES:
        if flags.is_crossposted and reference is not None:
            author_url = _reference_link(guild, reference)
        else:
            author_url = message.jump_url
        embed.set_author(
            name=_author_name(message.author),
            url=author_url,
            icon_url=message.author.display_avatar.url,
        )

    if kind in _STANDARD_TYPES:
        description = message.content or ZERO_WIDTH_SPACE
        if reference is not None and kind == MT.reply and reference.message_id is not None:
            description = f"{message.content}\n[Reply to]({_reference_link(guild, reference)})"
        embed.description = description
        embed.add_field(name="Channel", value=channel, inline=True)
        embed.add_field(name="Author", value=author, inline=True)
        if foreign:
            embed.add_field(name="Guild", value=guild_link, inline=True)

    if kind in _TIMESTAMP_TYPES:
        embed.timestamp = message.created_at

    if kind in _BOOST_TYPES:
        embed.description = f"{author} boosted the server{_BOOST_TIERS.get(kind, '')}!"

    if kind in (MT.guild_discovery_disqualified, MT.guild_discovery_requalified):
        subject = f"{guild_link} " if foreign else "This server "
        if kind == MT.guild_discovery_disqualified:
            embed.description = f"{subject}has been disqualified from discovery."
        else:
            embed.description = f"{subject}has been requalified for discovery."

    if kind == MT.pins_add and reference is not None:
        embed.description = f"{author} pinned [a message]({_reference_link(guild, reference)}) in {location}"
    elif kind == MT.new_member:
        joined = int(message.created_at.timestamp())
        where = f"{guild_link} " if foreign else ""
        embed.description = (
            f"{author} joined {where}on {discord_timestamp(joined, 'f')}, {discord_timestamp(joined, 'R')}"
        )
    elif kind == MT.channel_follow_add and reference is not None:
        source_guild = bot.get_guild(reference.guild_id) if reference.guild_id else None
        source = mention_channel(reference.channel_id)
        if source_guild is not None:
            source = f"[{source_guild.name}]({_reference_link(guild, reference)}) {source}"
        embed.description = f"{author} started following {source} in {location}"
    elif kind == MT.thread_created:
        thread = guild.get_thread(reference.channel_id) if reference is not None else None
        name = thread.mention if thread is not None else f"#{message.content}"
        embed.description = f"{author} created the thread {name} in {location}"

    if flags.crossposted:
        embed.add_field(name="Crossposted", value=ZERO_WIDTH_SPACE, inline=True)

    if flags.source_message_deleted:
        embed.add_field(name="Crosspost", value="Source deleted", inline=True)
    elif flags.is_crossposted and reference is not None:
        source_guild = bot.get_guild(reference.guild_id) if reference.guild_id else None
        if source_guild is not None:
            value = f"From [{source_guild.name}]({_reference_link(guild, reference)})"
        else:
            value = f"From {mention_channel(reference.channel_id)}"
        embed.add_field(name="Crosspost", value=value, inline=True)

    if flags.has_thread and kind != MT.thread_created:
        # A thread started from a message shares the message's id
        embed.add_field(name="Thread", value=mention_channel(message.id), inline=True)

    if flags.loading:
        embed.description = f"{author} is thinking..."

    return embed


def copy_embed(source: discord.Embed) -> discord.Embed:
    """Rebuild a received embed as a rich embed we are allowed to send."""
    embed = discord.Embed(
        title=source.title or None,
        description=source.description or ZERO_WIDTH_SPACE,
        url=source.url or None,
    )
    if source.timestamp:
        embed.timestamp = source.timestamp
    if source.color is not None:
        embed.color = source.color
    if source.image and source.image.url:
        embed.set_image(url=source.image.url)
    if source.thumbnail and source.thumbnail.url:
        embed.set_thumbnail(url=source.thumbnail.url)
    if source.footer and source.footer.text:
        embed.set_footer(text=source.footer.text, icon_url=source.footer.icon_url or None)
    if source.author and source.author.name:
        embed.set_author(
            name=source.author.name,
            url=source.author.url or None,
            icon_url=source.author.icon_url or None,
        )
    for embed_field in source.fields:
        embed.add_field(name=embed_field.name, value=embed_field.value, inline=bool(embed_field.inline))
    return embed


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


async def send_preview(send: Callable[..., Awaitable[Any]], preview: Preview) -> None:
    """
    Send embeds in chunks of ten, then the re-uploaded attachments.

    Attachments are downloaded before anything is sent so a failed download
    does not leave a half-posted preview.
    """
    files = [await attachment.to_file() for attachment in preview.attachments]

    for chunk in chunk_embeds(preview.embeds, MAX_EMBEDS_PER_MESSAGE):
        await send(embeds=chunk)

    for start in range(0, len(files), MAX_FILES_PER_MESSAGE):
        await send(files=files[start:start + MAX_FILES_PER_MESSAGE])
