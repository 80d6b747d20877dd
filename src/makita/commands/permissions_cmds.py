"""
Handlers for ``/permissions list|set|add|remove`` and the permission select menu.

All of these are gated on ManagePermissions by the router.
"""

from __future__ import annotations

from typing import List

import discord

from makita.datatypes.discord_datatypes import mention_role, mention_user
from makita.datatypes.permission_datatypes import PermissionRecord, PermissionType
from makita.errors import Generic, InvalidRequest, WrongGuild
from makita.router.command_router import CommandContext
from makita.router.custom_ids import CustomIdType, build_custom_id
from makita.settings.permissions_manager import PermissionsManager
from makita.util.logger import get_logger
from makita.util.responses import build_embed, defer, respond, respond_success

logger = get_logger("permissions_cmds")

# Selections reach the router directly; the view only has to expire.
SELECT_VIEW_TIMEOUT_SECONDS = 300


def permission_names(bits: int) -> str:
    """Human readable list of the native permissions in ``bits``."""
    names = [name.replace("_", " ").title() for name, enabled in discord.Permissions(bits) if enabled]
    return ", ".join(names) if names else "None"


class PermissionSelectView(discord.ui.View):
    """Select menu listing every permission kind."""

    def __init__(self, selected: PermissionType | None = None) -> None:
        super().__init__(timeout=SELECT_VIEW_TIMEOUT_SECONDS)
        self.add_item(
            discord.ui.Select(
                custom_id=build_custom_id(CustomIdType.LIST_PERMISSIONS),
                placeholder=selected.display if selected else None,
                options=[
                    discord.SelectOption(label=kind.display, value=kind.value, description=kind.description)
                    for kind in PermissionType
                ],
            )
        )

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        # Selections are served by the command router, not by this view
        return False


def record_embed(kind: PermissionType, record: PermissionRecord) -> discord.Embed:
    embed = build_embed(title=kind.display)
    if record.roles:
        embed.add_field(name="Roles", value="\n".join(mention_role(r) for r in record.roles), inline=False)
    if record.users:
        embed.add_field(name="Users", value="\n".join(mention_user(u) for u in record.users), inline=False)
    embed.add_field(name="Default", value=permission_names(record.native), inline=False)
    return embed


class PermissionsCommands:
    """Permission management commands."""

    def __init__(self, permissions: PermissionsManager) -> None:
        self.permissions = permissions

    async def list_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        await respond(
            ctx.interaction,
            embed=build_embed("Select a permission"),
            view=PermissionSelectView(),
        )

    async def list_component(self, ctx: CommandContext) -> None:
        """Show the record picked in the select menu, replacing the menu message."""
        await defer(ctx.interaction)
        values: List[str] = (ctx.interaction.data or {}).get("values") or []
        if not values:
            raise InvalidRequest("Missing component values")
        kind = PermissionType.from_string(values[0])

        record = await self.permissions.snapshot(ctx.guild_id, kind)
        await ctx.interaction.edit_original_response(
            embed=record_embed(kind, record),
            view=PermissionSelectView(selected=kind),
        )

    async def set_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        kind = PermissionType.from_string(ctx.args.get_string("permission"))
        bits = ctx.args.get_integer("bits")
        if bits < 0 or bits & ~discord.Permissions.all().value:
            raise InvalidRequest("Invalid permissions bits")

        await self.permissions.set_native(ctx.guild_id, kind, bits)
        logger.info("[PERMISSIONS CMDS] Guild %s: %s native set to %d", ctx.guild_id, kind.value, bits)
        await respond_success(ctx.interaction)

    async def add_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        kind = PermissionType.from_string(ctx.args.get_string("permission"))
        user_id = ctx.args.optional_user("user")
        role_id = ctx.args.optional_role("role")
        guild_id = ctx.guild_id

        if role_id is not None:
            guild = ctx.bot.get_guild(guild_id)
            if guild is not None and guild.get_role(role_id) is None:
                raise WrongGuild()

        await self.permissions.add(guild_id, kind, user_id=user_id, role_id=role_id)
        await respond_success(ctx.interaction)

    async def remove_command(self, ctx: CommandContext) -> None:
        await defer(ctx.interaction)
        kind = PermissionType.from_string(ctx.args.get_string("permission"))
        user_id = ctx.args.optional_user("user")
        role_id = ctx.args.optional_role("role")

        result = await self.permissions.remove(ctx.guild_id, kind, user_id=user_id, role_id=role_id)

        if not result.user_found:
            raise Generic(f"User {mention_user(user_id)} not added")
        if not result.role_found:
            raise Generic(f"Role {mention_role(role_id)} not added")
        await respond_success(ctx.interaction)
