"""
Handlers for ``/previews ...`` and the ``Archive`` message context menu.
"""

from __future__ import annotations

import discord

from makita.datatypes.discord_datatypes import mention_channel
from makita.datatypes.preview_datatypes import MessageLink
from makita.errors import CacheMissing, Generic, Internal
from makita.previews.link_parser import parse_message_link
from makita.previews.preview_builder import resolve_preview, send_preview
from makita.router.command_router import CommandContext
from makita.settings.previews_manager import PreviewsManager
from makita.util.logger import get_logger
from makita.util.responses import build_embed, defer, respond, respond_success, respond_text

logger = get_logger("previews_cmds")


def _requester_name(user: discord.abc.User) -> str:
    if user.discriminator in ("0", "0000"):
        return user.name
    return f"{user.name}#{user.discriminator}"


class PreviewsCommands:
    """Preview configuration and on-demand previews."""

    def __init__(self, previews: PreviewsManager) -> None:
        self.previews = previews

    async def add_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        await self.previews.add_channel(ctx.guild_id, ctx.args.get_channel("target"))
        await respond_success(ctx.interaction)

    async def remove_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        await self.previews.remove_channel(ctx.guild_id, ctx.args.get_channel("target"))
        await respond_success(ctx.interaction)

    async def list_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        channels = await self.previews.list_channels(ctx.guild_id)
        if not channels:
            await respond_text(ctx.interaction, "No channels")
            return
        lines = ["**Channels**"] + [mention_channel(c) for c in channels]
        await respond_text(ctx.interaction, "\n".join(lines))

    async def archive_command(self, ctx: CommandContext) -> None:
        """Set the archive channel, or clear it when no target is given."""
        await defer(ctx.interaction)
        await self.previews.set_archive(ctx.guild_id, ctx.args.optional_channel("target"))
        await respond_success(ctx.interaction)

    async def view_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        link = parse_message_link(ctx.args.get_string("target"))
        preview = await resolve_preview(ctx.bot, ctx.user.id, ctx.interaction.guild_id, link)
        await send_preview(ctx.interaction.followup.send, preview)

    async def archive_context(self, ctx: CommandContext) -> None:
        """Post a preview of the targeted message into the guild's archive channel."""
        await respond(ctx.interaction, embed=build_embed("Running..."), ephemeral=True)

        guild_id = ctx.guild_id
        archive_id = await self.previews.get_archive(guild_id)
        if archive_id is None:
            raise Generic("Archive channel not set")

        link = MessageLink(guild_id, ctx.interaction.channel_id, ctx.target_message_id)
        preview = await resolve_preview(ctx.bot, ctx.user.id, guild_id, link)
        if not preview.embeds:
            raise Internal(12)

        preview.embeds[0].set_footer(
            text=f"Requested by {_requester_name(ctx.user)}",
            icon_url=ctx.user.display_avatar.url,
        )

        archive = ctx.bot.get_channel(archive_id)
        if archive is None:
            raise CacheMissing()
        await send_preview(archive.send, preview)
        logger.info("[PREVIEWS CMDS] Guild %s: archived message %s", guild_id, link.message_id)

        await ctx.interaction.edit_original_response(embed=build_embed("Success"))
