"""
Handlers for ``/timeout`` and ``/untimeout``.

Timeouts use Discord's native communication-disabled state, so nothing is
scheduled or stored here.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import discord

from makita.datatypes.discord_datatypes import mention_user
from makita.errors import CacheMissing, NotFound
from makita.router.command_router import CommandContext
from makita.util.format_utils import discord_timestamp, highest_role_position, link_guild, parse_duration
from makita.util.logger import get_logger
from makita.util.responses import build_embed, defer, respond, respond_success, respond_text

logger = get_logger("moderation_cmds")

MAX_TIMEOUT = timedelta(days=28)
SHORT_TIMEOUT = timedelta(hours=1)


async def _fetch_member(guild: discord.Guild, user_id: int) -> discord.Member:
    member = guild.get_member(user_id)
    if member is not None:
        return member
    try:
        return await guild.fetch_member(user_id)
    except discord.NotFound:
        raise NotFound("Member") from None


def format_until(until: datetime, duration: timedelta) -> str:
    """Absolute plus relative Discord timestamp; time only for short timeouts."""
    stamp = int(until.timestamp())
    style = "t" if duration <= SHORT_TIMEOUT else "f"
    return f"{discord_timestamp(stamp, style)} {discord_timestamp(stamp, 'R')}"


class ModerationCommands:
    """Member timeout commands, gated on the Timeout permission."""

    async def timeout_command(self, ctx: CommandContext) -> None:
        """
        Time out a member.

        Options: ``target`` (user), ``duration`` (e.g. ``1d12h``), ``reason``,
        ``shame`` (announce in channel, default on), ``dm`` (notify the member,
        default on), ``anon`` (hide who did it and keep replies ephemeral,
        default off).
        """
        interaction = ctx.interaction
        reason = ctx.args.get_string("reason")
        shame = ctx.args.optional_boolean("shame", True)
        dm = ctx.args.optional_boolean("dm", True)
        anon = ctx.args.optional_boolean("anon", False)

        duration = parse_duration(ctx.args.get_string("duration"))
        if duration is None:
            await respond_text(interaction, "Duration is malformed", ephemeral=anon)
            return

        guild = ctx.bot.get_guild(ctx.guild_id)
        if guild is None:
            raise CacheMissing()
        target = await _fetch_member(guild, ctx.args.get_user("target"))

        if shame and not anon:
            await defer(interaction)

        if duration > MAX_TIMEOUT:
            await respond_text(interaction, "Duration is too long", ephemeral=anon)
            return

        if target.id == guild.owner_id:
            await respond_text(interaction, "Can't time out owner", ephemeral=anon)
            return

        if guild.me is None:
            raise CacheMissing()
        if highest_role_position(guild.me.roles) <= highest_role_position(target.roles):
            await respond_text(interaction, f"{target.mention} has a role above me", ephemeral=anon)
            return

        until = datetime.now(timezone.utc) + duration
        await target.timeout(until, reason=reason)
        until_text = format_until(until, duration)
        logger.info("[MODERATION] Guild %s: %s timed out until %s", guild.id, target.id, until.isoformat())

        if shame:
            embed = build_embed(f"{target.mention} was muted")
            embed.add_field(name="Reason", value=reason, inline=False)
            embed.add_field(name="Until", value=until_text, inline=False)
            if anon:
                await interaction.channel.send(embed=embed)
            else:
                embed.add_field(name="By", value=mention_user(ctx.user.id), inline=False)
                await respond(interaction, embed=embed)

        if dm and not target.bot:
            notice = build_embed(
                f"You were muted in {link_guild(guild, interaction.channel_id)} until {until_text} for {reason}"
            )
            try:
                await target.send(embed=notice)
            except discord.HTTPException as exc:
                # Members with closed DMs are common; the timeout itself succeeded
                logger.debug("[MODERATION] Could not DM %s: %s", target.id, exc)

        if not shame or anon:
            await respond_text(interaction, "Success", ephemeral=anon)

    async def untimeout_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        guild = ctx.bot.get_guild(ctx.guild_id)
        if guild is None:
            raise CacheMissing()
        target = await _fetch_member(guild, ctx.args.get_user("target"))
        await target.remove_timeout()
        logger.info("[MODERATION] Guild %s: timeout removed for %s", guild.id, target.id)
        await respond_success(ctx.interaction)
