"""Handler for ``/info``."""

from __future__ import annotations

import platform

import discord

from makita import __version__
from makita.router.command_router import CommandContext
from makita.util.format_utils import invite_url
from makita.util.responses import build_embed, defer, respond


class InfoCommands:
    def __init__(self, client_id: int) -> None:
        self.client_id = client_id

    def info_embed(self) -> discord.Embed:
        embed = build_embed()
        embed.add_field(
            name="Bot Info",
            value="Message previews, permission management and moderation tools",
            inline=False,
        )
        embed.add_field(name="Links", value=f"[Invite]({invite_url(self.client_id)})", inline=False)
        embed.add_field(
            name="Build Info",
            value=(
                f"Package Version: v{__version__}\n"
                f"py-cord {discord.__version__} on Python {platform.python_version()}"
            ),
            inline=False,
        )
        return embed

    async def info_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        await respond(ctx.interaction, embed=self.info_embed())
