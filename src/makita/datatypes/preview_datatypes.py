"""Per-guild preview configuration and parsed message links."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from makita.datatypes.discord_datatypes import ChannelID, GuildID, MessageID


@dataclass(slots=True)
class PreviewConfig:
    """Auto-scan channels (sorted, unique) and the optional archive channel."""

    auto_channels: List[ChannelID] = field(default_factory=list)
    archive_channel: Optional[ChannelID] = None

    @classmethod
    def default(cls, guild_id: GuildID) -> "PreviewConfig":
        return cls()


@dataclass(frozen=True, slots=True)
class MessageLink:
    guild_id: GuildID
    channel_id: ChannelID
    message_id: MessageID

    @property
    def url(self) -> str:
        return f"https://discord.com/channels/{self.guild_id}/{self.channel_id}/{self.message_id}"
