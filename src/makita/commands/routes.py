"""The bot's route tables: which handler serves which interaction, behind which permission."""

from __future__ import annotations

import discord

from makita.commands.info_cmds import InfoCommands
from makita.commands.moderation_cmds import ModerationCommands
from makita.commands.permissions_cmds import PermissionsCommands
from makita.commands.previews_cmds import PreviewsCommands
from makita.datatypes.permission_datatypes import PermissionType
from makita.router.command_router import CommandRouter, Route
from makita.router.custom_ids import CustomIdType
from makita.settings.permissions_manager import PermissionsManager
from makita.settings.previews_manager import PreviewsManager


def build_router(
    bot: discord.Bot,
    client_id: int,
    permissions: PermissionsManager,
    previews: PreviewsManager,
) -> CommandRouter:
    info = InfoCommands(client_id)
    permission_cmds = PermissionsCommands(permissions)
    preview_cmds = PreviewsCommands(previews)
    moderation = ModerationCommands()

    manage_permissions = PermissionType.MANAGE_PERMISSIONS
    manage_previews = PermissionType.MANAGE_PREVIEWS

    return CommandRouter(
        bot,
        permissions,
        chat_input_routes={
            "info": Route(info.info_command),
            "permissions list": Route(permission_cmds.list_command, manage_permissions),
            "permissions set": Route(permission_cmds.set_command, manage_permissions),
            "permissions add": Route(permission_cmds.add_command, manage_permissions),
            "permissions remove": Route(permission_cmds.remove_command, manage_permissions),
            "previews add": Route(preview_cmds.add_command, manage_previews),
            "previews remove": Route(preview_cmds.remove_command, manage_previews),
            "previews list": Route(preview_cmds.list_command, manage_previews),
            "previews archive": Route(preview_cmds.archive_command, manage_previews),
            "previews view": Route(preview_cmds.view_command),
            "timeout": Route(moderation.timeout_command, PermissionType.TIMEOUT),
            "untimeout": Route(moderation.untimeout_command, PermissionType.TIMEOUT),
        },
        component_routes={
            CustomIdType.LIST_PERMISSIONS: Route(permission_cmds.list_component, manage_permissions),
        },
        message_routes={
            "Archive": Route(preview_cmds.archive_context, PermissionType.CREATE_ARCHIVE),
        },
        user_routes={},
    )
