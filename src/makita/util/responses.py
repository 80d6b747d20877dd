"""
Small helpers for answering interactions with embeds.

Interactions must be answered exactly once with an initial response; anything
after that goes through the follow-up webhook. ``respond`` picks the right one
so handlers and the router do not need to track it.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import discord

from makita.util.logger import get_logger

logger = get_logger("responses")

ERROR_COLOR = discord.Color.red()
# Blank description keeps embeds valid when everything else is empty
ZERO_WIDTH_SPACE = "\u200b"
MAX_EMBEDS_PER_MESSAGE = 10


def build_embed(
    description: Optional[str] = None,
    *,
    title: Optional[str] = None,
    color: Optional[discord.Color] = None,
) -> discord.Embed:
    embed = discord.Embed(title=title, description=description)
    if color is not None:
        embed.color = color
    return embed


def error_embed(message: str) -> discord.Embed:
    return build_embed(message, color=ERROR_COLOR)


def chunk_embeds(embeds: Sequence[discord.Embed], size: int = MAX_EMBEDS_PER_MESSAGE) -> List[List[discord.Embed]]:
    return [list(embeds[i:i + size]) for i in range(0, len(embeds), size)]


async def defer(interaction: discord.Interaction, *, ephemeral: bool = False) -> None:
    """Acknowledge the interaction so the handler has time to work."""
    if not interaction.response.is_done():
        await interaction.response.defer(ephemeral=ephemeral)


async def respond(
    interaction: discord.Interaction,
    *,
    content: Optional[str] = None,
    embed: Optional[discord.Embed] = None,
    embeds: Optional[List[discord.Embed]] = None,
    files: Optional[List[discord.File]] = None,
    view: Optional[discord.ui.View] = None,
    ephemeral: bool = False,
) -> None:
    """Send an initial response, or a follow-up if the interaction was already answered."""
    kwargs = {"ephemeral": ephemeral}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if embeds is not None:
        kwargs["embeds"] = embeds
    if files:
        kwargs["files"] = files
    if view is not None:
        kwargs["view"] = view

    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


async def respond_text(interaction: discord.Interaction, description: str, *, ephemeral: bool = False) -> None:
    await respond(interaction, embed=build_embed(description), ephemeral=ephemeral)


async def respond_success(interaction: discord.Interaction) -> None:
    await respond_text(interaction, "Success")


async def respond_error(interaction: discord.Interaction, message: str) -> None:
    await respond(interaction, embed=error_embed(message), ephemeral=True)
