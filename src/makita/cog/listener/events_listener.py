"""Event listener Cog for Makita.

Keeps durable guild records and preview channel lists in step with the gateway:
joining or regaining a guild clears any pending expiry and drops preview
channels that no longer exist, and a deleted channel leaves the preview list.
"""

import discord
from discord.ext import commands

from makita.database.db_connection import db_connection
from makita.datatypes.discord_datatypes import GuildID
from makita.settings.previews_manager import previews_manager
from makita.settings.repositories import GuildsRepository
from makita.util.logger import get_logger

logger = get_logger("events_listener")

guilds_repo = GuildsRepository()


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and guild bookkeeping handlers."""

    def __init__(self, discord_bot_instance):
        self.bot = discord_bot_instance
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        if self.bot.user:
            await self.bot.change_presence(
                status=discord.Status.online,
                activity=discord.Activity(
                    type=discord.ActivityType.listening,
                    name="your inner thoughts",
                ),
            )
            logger.info("Bot connected as %s (ID: %s) in %d guilds", self.bot.user, self.bot.user.id, len(self.bot.guilds))
        else:
            logger.warning("[EVENTS LISTENER] Bot partially connected, but user information not yet available.")

    async def _guild_available(self, guild: discord.Guild) -> None:
        """
        Upsert the guild row with no expiry, then drop preview channels that
        no longer exist in the guild.
        """
        guild_id = GuildID(guild.id)
        async with db_connection.transaction() as conn:
            await guilds_repo.upsert_active(conn, guild_id)

        existing = [channel.id for channel in guild.channels]
        existing.extend(thread.id for thread in guild.threads)
        removed = await previews_manager.guild_sync(guild_id, existing)
        if removed:
            logger.info(
                "[EVENTS LISTENER] Guild %s: dropped %d stale preview channels", guild_id, len(removed)
            )

    @commands.Cog.listener(name='on_guild_join')
    async def on_guild_join(self, guild: discord.Guild):
        logger.debug("[EVENTS LISTENER] Bot joined guild: %s (ID: %s)", guild.name, guild.id)
        try:
            await self._guild_available(guild)
        except Exception:
            logger.exception("[EVENTS LISTENER] Failed to register guild %s", guild.id)

    @commands.Cog.listener(name='on_guild_available')
    async def on_guild_available(self, guild: discord.Guild):
        try:
            await self._guild_available(guild)
        except Exception:
            logger.exception("[EVENTS LISTENER] Failed to sync guild %s", guild.id)

    @commands.Cog.listener(name='on_guild_channel_delete')
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel):
        try:
            if await previews_manager.channel_deleted(GuildID(channel.guild.id), channel.id):
                logger.info("[EVENTS LISTENER] Removed deleted channel %s from previews", channel.id)
        except Exception:
            logger.exception("[EVENTS LISTENER] Failed to handle deletion of channel %s", channel.id)


def setup(discord_bot_instance):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance))
