"""
The py-cord client.

``MakitaBot`` does not use py-cord's application command framework: commands
are registered from raw payloads (``commands.command_schema``) and every
interaction is handed to the ``CommandRouter``.
"""

from __future__ import annotations

import os

import discord

from makita.commands.command_schema import register_commands
from makita.commands.routes import build_router
from makita.configuration.app_configuration import BotConfig
from makita.settings.permissions_manager import PermissionsManager
from makita.settings.previews_manager import PreviewsManager
from makita.util.logger import get_logger

logger = get_logger("bot")

SKIP_COMMANDS_ENV = "MAKITA_SKIP_COMMANDS"


def build_intents() -> discord.Intents:
    """Guild, guild message, member and message content intents."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.members = True
    intents.message_content = True
    return intents


class MakitaBot(discord.Bot):
    def __init__(
        self,
        config: BotConfig,
        permissions: PermissionsManager,
        previews: PreviewsManager,
    ) -> None:
        super().__init__(intents=build_intents(), auto_sync_commands=False)
        self.config = config
        self.router = build_router(self, config.client_id, permissions, previews)
        self._commands_registered = False

    async def on_connect(self) -> None:
        # Reconnects fire on_connect again; registering once per process is enough
        if self._commands_registered:
            return
        self._commands_registered = True
        if os.getenv(SKIP_COMMANDS_ENV):
            logger.info("[BOT] %s set, skipping command registration", SKIP_COMMANDS_ENV)
            return
        try:
            await register_commands(self, self.config.client_id, self.config.commands_guild)
        except discord.HTTPException:
            logger.exception("[BOT] Command registration failed")

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        await self.router.dispatch(interaction)


def load_cogs(bot: discord.Bot) -> None:
    from makita.cog.listener import events_listener, message_listener

    events_listener.setup(bot)
    message_listener.setup(bot)

    logger.info("All cogs loaded successfully.")


def create_bot(config: BotConfig, permissions: PermissionsManager, previews: PreviewsManager) -> MakitaBot:
    bot = MakitaBot(config, permissions, previews)
    load_cogs(bot)
    return bot
