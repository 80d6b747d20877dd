from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from makita.commands.command_schema import COMMANDS, register_commands
from makita.datatypes.permission_datatypes import PermissionType


def find(name):
    return next(command for command in COMMANDS if command["name"] == name)


def test_every_routed_command_is_declared():
    assert {command["name"] for command in COMMANDS} == {
        "info", "permissions", "previews", "timeout", "untimeout", "Archive",
    }
    assert [sub["name"] for sub in find("permissions")["options"]] == ["list", "set", "add", "remove"]
    assert [sub["name"] for sub in find("previews")["options"]] == ["add", "remove", "list", "archive", "view"]


def test_permission_choices_match_permission_types():
    set_options = find("permissions")["options"][1]["options"]
    choices = [choice["value"] for choice in set_options[0]["choices"]]
    assert choices == [kind.value for kind in PermissionType]


@pytest.mark.asyncio
async def test_register_to_guild_when_configured():
    http = SimpleNamespace(bulk_upsert_guild_commands=AsyncMock(), bulk_upsert_global_commands=AsyncMock())
    await register_commands(SimpleNamespace(http=http), 42, 7)
    http.bulk_upsert_guild_commands.assert_awaited_once_with(42, 7, COMMANDS)
    http.bulk_upsert_global_commands.assert_not_awaited()


@pytest.mark.asyncio
async def test_register_globally_by_default():
    http = SimpleNamespace(bulk_upsert_guild_commands=AsyncMock(), bulk_upsert_global_commands=AsyncMock())
    await register_commands(SimpleNamespace(http=http), 42)
    http.bulk_upsert_global_commands.assert_awaited_once_with(42, COMMANDS)
