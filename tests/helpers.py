"""Stand-ins for py-cord objects shared across tests."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord


async def spin(times: int = 5) -> None:
    """Let scheduled tasks run."""
    for _ in range(times):
        await asyncio.sleep(0)


def make_role(role_id, **permissions):
    return SimpleNamespace(id=role_id, permissions=discord.Permissions(**permissions), position=role_id)


def make_interaction(
    data=None,
    *,
    guild_id=10,
    user_id=100,
    kind=discord.InteractionType.application_command,
    answered=False,
):
    response = SimpleNamespace(
        is_done=MagicMock(return_value=answered),
        send_message=AsyncMock(),
        defer=AsyncMock(),
    )
    return SimpleNamespace(
        id=1,
        type=kind,
        data=data or {},
        guild_id=guild_id,
        channel_id=20,
        user=SimpleNamespace(id=user_id, name="tester", discriminator="0", bot=False),
        response=response,
        followup=SimpleNamespace(send=AsyncMock()),
        edit_original_response=AsyncMock(),
        channel=SimpleNamespace(send=AsyncMock()),
    )


def sent_embed(interaction):
    """The embed of the single message sent on ``interaction``, and its kwargs."""
    if interaction.response.send_message.await_count:
        kwargs = interaction.response.send_message.await_args.kwargs
    else:
        kwargs = interaction.followup.send.await_args.kwargs
    return kwargs["embed"], kwargs
