"""
Application command definitions and their registration with Discord.

Commands are registered from these raw payloads in one bulk overwrite, either
globally or, when ``commands_guild`` is configured, to that guild only (guild
commands update instantly, which is handy while developing).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import discord

from makita.datatypes.permission_datatypes import PermissionType
from makita.util.logger import get_logger

logger = get_logger("command_schema")

SUB_COMMAND = 1
STRING = 3
INTEGER = 4
BOOLEAN = 5
USER = 6
CHANNEL = 7
ROLE = 8

CHAT_INPUT = 1
MESSAGE = 3


def _option(kind: int, name: str, description: str, *, required: bool = True, **extra: Any) -> Dict[str, Any]:
    option = {"type": kind, "name": name, "description": description, "required": required}
    option.update(extra)
    return option


def _sub(name: str, description: str, *options: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": SUB_COMMAND, "name": name, "description": description, "options": list(options)}


_PERMISSION_CHOICE = _option(
    STRING,
    "permission",
    "Permission to change",
    choices=[{"name": kind.display, "value": kind.value} for kind in PermissionType],
)

_USER_OR_ROLE = (
    _option(USER, "user", "User to change", required=False),
    _option(ROLE, "role", "Role to change", required=False),
)

COMMANDS: List[Dict[str, Any]] = [
    {
        "type": CHAT_INPUT,
        "name": "info",
        "description": "Information about the bot",
    },
    {
        "type": CHAT_INPUT,
        "name": "permissions",
        "description": "Manage bot permissions",
        "dm_permission": False,
        "options": [
            _sub("list", "List permission grants"),
            _sub(
                "set",
                "Set the Discord permissions that grant a bot permission",
                _PERMISSION_CHOICE,
                _option(INTEGER, "bits", "Discord permission bits", min_value=0),
            ),
            _sub("add", "Grant a permission to a user or role", _PERMISSION_CHOICE, *_USER_OR_ROLE),
            _sub("remove", "Revoke a permission from a user or role", _PERMISSION_CHOICE, *_USER_OR_ROLE),
        ],
    },
    {
        "type": CHAT_INPUT,
        "name": "previews",
        "description": "Message link previews",
        "options": [
            _sub("add", "Preview links posted in a channel", _option(CHANNEL, "target", "Channel to scan")),
            _sub("remove", "Stop previewing links in a channel", _option(CHANNEL, "target", "Channel to stop scanning")),
            _sub("list", "List channels with automatic previews"),
            _sub(
                "archive",
                "Set the archive channel, or clear it",
                _option(CHANNEL, "target", "Archive channel", required=False),
            ),
            _sub("view", "Preview a message link", _option(STRING, "target", "Message link")),
        ],
    },
    {
        "type": CHAT_INPUT,
        "name": "timeout",
        "description": "Time out a member",
        "dm_permission": False,
        "options": [
            _option(USER, "target", "Member to time out"),
            _option(STRING, "duration", "Duration, e.g. 1d12h or 30m"),
            _option(STRING, "reason", "Reason shown to the member"),
            _option(BOOLEAN, "shame", "Announce the timeout in this channel", required=False),
            _option(BOOLEAN, "dm", "Send the member a DM", required=False),
            _option(BOOLEAN, "anon", "Hide who issued the timeout", required=False),
        ],
    },
    {
        "type": CHAT_INPUT,
        "name": "untimeout",
        "description": "Remove a member's timeout",
        "dm_permission": False,
        "options": [_option(USER, "target", "Member to release")],
    },
    {
        "type": MESSAGE,
        "name": "Archive",
        "dm_permission": False,
    },
]


async def register_commands(bot: discord.Bot, client_id: int, commands_guild: Optional[int] = None) -> None:
    """Overwrite the bot's application commands with ``COMMANDS``."""
    if commands_guild is not None:
        await bot.http.bulk_upsert_guild_commands(client_id, commands_guild, COMMANDS)
        logger.info("[COMMANDS] Registered %d commands to guild %s", len(COMMANDS), commands_guild)
    else:
        await bot.http.bulk_upsert_global_commands(client_id, COMMANDS)
        logger.info("[COMMANDS] Registered %d global commands", len(COMMANDS))
