"""Message listener Cog for Makita.

Posts previews for message links dropped in channels configured with
``/previews add``.
"""

import discord
from discord.ext import commands

from makita.datatypes.discord_datatypes import ChannelID, GuildID
from makita.errors import BotError
from makita.previews.link_parser import iter_link_matches, link_from_match
from makita.previews.preview_builder import resolve_preview, send_preview
from makita.settings.previews_manager import previews_manager
from makita.util.logger import get_logger

logger = get_logger("message_listener_cog")


def should_process_message(message: discord.Message) -> bool:
    """Guild messages from humans only."""
    if message.guild is None:
        return False
    return not message.author.bot


class MessageListenerCog(commands.Cog):
    """Cog responsible for scanning messages for links to preview."""

    def __init__(self, discord_bot_instance):
        self.bot = discord_bot_instance
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    async def scan_message(self, message: discord.Message) -> int:
        """Preview each link in ``message``. Returns how many previews were sent."""
        sent = 0
        for match in iter_link_matches(message.content):
            try:
                link = link_from_match(match)
                preview = await resolve_preview(self.bot, message.author.id, message.guild.id, link)
                await send_preview(message.channel.send, preview)
                sent += 1
            except BotError as exc:
                # Unreachable or forbidden links are skipped silently in auto-scan
                logger.debug("[MESSAGE LISTENER] Skipping link in message %s: %s", message.id, exc)
        return sent

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        if not should_process_message(message):
            return
        if not await previews_manager.should_scan(GuildID(message.guild.id), ChannelID(message.channel.id)):
            return
        await self.scan_message(message)


def setup(discord_bot_instance):
    """Register the MessageListenerCog with the bot."""
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance))
