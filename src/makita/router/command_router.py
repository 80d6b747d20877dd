"""
Interaction router.

Every interaction the bot receives goes through ``CommandRouter.dispatch``:

1. Resolve the route from the command path, custom id or context-menu name.
   Unknown routes are ignored.
2. Gate it: guild-only routes fail with ``GuildOnly`` outside a guild; routes
   with a required permission look up the member's roles in the gateway cache
   and ask the permission registry. A denial is answered with an ephemeral
   "Missing permission" embed and the handler never runs.
3. Run the handler. Errors are rendered back to the user: ``BotError`` text
   verbatim, anything else as an internal error (and logged with traceback).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import discord

from makita.datatypes.permission_datatypes import PermissionType
from makita.errors import BotError, CacheMissing, GuildOnly, Internal
from makita.router.custom_ids import CustomIdType, is_own_custom_id, parse_custom_id
from makita.router.slash_decode import SlashMap, decode_command
from makita.settings.permissions_manager import PermissionsManager
from makita.util.logger import get_logger
from makita.util.responses import respond_error

logger = get_logger("command_router")

# Application command types in the interaction payload
CHAT_INPUT = 1
USER_COMMAND = 2
MESSAGE_COMMAND = 3


@dataclass(slots=True)
class CommandContext:
    """Everything a handler needs about the interaction it is serving."""

    bot: discord.Bot
    interaction: discord.Interaction
    args: SlashMap = field(default_factory=SlashMap)
    custom_args: Dict[str, str] = field(default_factory=dict)
    target_message_id: Optional[int] = None

    @property
    def guild_id(self) -> int:
        if self.interaction.guild_id is None:
            raise GuildOnly()
        return self.interaction.guild_id

    @property
    def user(self) -> discord.abc.User:
        return self.interaction.user


Handler = Callable[[CommandContext], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Route:
    handler: Handler
    permission: Optional[PermissionType] = None
    guild_only: bool = False

    @property
    def requires_guild(self) -> bool:
        return self.guild_only or self.permission is not None


class CommandRouter:
    """
    Static route tables plus the permission gate.

    Args:
        bot: The running bot; its gateway cache supplies guilds and members.
        permissions: Permission registry used for the gate.
        chat_input_routes: ``{"permissions add": Route(...)}``.
        component_routes: ``{CustomIdType.LIST_PERMISSIONS: Route(...)}``.
        message_routes: Message context-menu name to route.
        user_routes: User context-menu name to route.
    """

    def __init__(
        self,
        bot: discord.Bot,
        permissions: PermissionsManager,
        *,
        chat_input_routes: Mapping[str, Route],
        component_routes: Mapping[CustomIdType, Route],
        message_routes: Mapping[str, Route],
        user_routes: Optional[Mapping[str, Route]] = None,
    ) -> None:
        self.bot = bot
        self.permissions = permissions
        self.chat_input_routes = dict(chat_input_routes)
        self.component_routes = dict(component_routes)
        self.message_routes = dict(message_routes)
        self.user_routes = dict(user_routes or {})

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def dispatch(self, interaction: discord.Interaction) -> None:
        if interaction.type == discord.InteractionType.component and not is_own_custom_id(
            (interaction.data or {}).get("custom_id")
        ):
            return

        try:
            if interaction.type == discord.InteractionType.application_command:
                await self._route_application_command(interaction)
            elif interaction.type == discord.InteractionType.component:
                await self._route_component(interaction)
        except BotError as exc:
            await self._render_error(interaction, exc.message)
        except Exception as exc:
            logger.exception("[ROUTER] Unhandled error while serving interaction %s", interaction.id)
            await self._render_error(interaction, f"Internal error: `{type(exc).__name__}`")

    async def _render_error(self, interaction: discord.Interaction, message: str) -> None:
        try:
            await respond_error(interaction, message)
        except discord.HTTPException:
            logger.exception("[ROUTER] Failed to send error response: %s", message)

    # ------------------------------------------------------------------
    # Route resolution
    # ------------------------------------------------------------------

    async def _route_application_command(self, interaction: discord.Interaction) -> None:
        data: Dict[str, Any] = interaction.data or {}
        command_type = data.get("type", CHAT_INPUT)

        if command_type == CHAT_INPUT:
            path, args = decode_command(data)
            logger.debug("[ROUTER] Received command %s", path)
            route = self.chat_input_routes.get(path)
            if route is not None:
                await self._run(route, CommandContext(self.bot, interaction, args=args))
            return

        if command_type == MESSAGE_COMMAND:
            name = data.get("name", "")
            route = self.message_routes.get(name)
            if route is None:
                return
            messages = (data.get("resolved") or {}).get("messages") or {}
            if not messages:
                raise Internal(13)
            message_id = int(data.get("target_id") or next(iter(messages)))
            logger.debug("[ROUTER] Received message command %s on %s", name, message_id)
            await self._run(route, CommandContext(self.bot, interaction, target_message_id=message_id))
            return

        if command_type == USER_COMMAND:
            route = self.user_routes.get(data.get("name", ""))
            if route is not None:
                await self._run(route, CommandContext(self.bot, interaction))

    async def _route_component(self, interaction: discord.Interaction) -> None:
        custom_id = (interaction.data or {}).get("custom_id", "")
        kind, custom_args = parse_custom_id(custom_id)
        logger.debug("[ROUTER] Received component with id %s", custom_id)
        route = self.component_routes.get(kind)
        if route is not None:
            await self._run(route, CommandContext(self.bot, interaction, custom_args=custom_args))

    # ------------------------------------------------------------------
    # Gate
    # ------------------------------------------------------------------

    async def _run(self, route: Route, ctx: CommandContext) -> None:
        if route.requires_guild and ctx.interaction.guild_id is None:
            raise GuildOnly()

        if route.permission is not None:
            missing = await self.check_permission(ctx.interaction, route.permission)
            if missing is not None:
                await respond_error(ctx.interaction, f"Missing permission `{missing.display}`")
                return

        await route.handler(ctx)

    async def check_permission(
        self, interaction: discord.Interaction, kind: PermissionType
    ) -> Optional[PermissionType]:
        """Ask the registry about the invoking member. None means allowed."""
        guild = self.bot.get_guild(interaction.guild_id)
        if guild is None:
            raise CacheMissing()

        member = interaction.user if isinstance(interaction.user, discord.Member) else None
        if member is None:
            member = guild.get_member(interaction.user.id)
        if member is None:
            raise CacheMissing()

        roles: List[discord.Role] = list(member.roles)
        return await self.permissions.check(kind, guild.id, guild.owner_id, member.id, roles)
