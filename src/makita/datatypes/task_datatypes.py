"""Messages carried on the task broadcast channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from makita.datatypes.discord_datatypes import GuildID


@dataclass(frozen=True, slots=True)
class Kill:
    """Process shutdown. Every subscriber loop must stop."""


@dataclass(frozen=True, slots=True)
class GuildDestroyed:
    """The guild's durable data was purged; caches must drop their entry."""

    guild_id: GuildID


TaskMessage = Union[Kill, GuildDestroyed]
