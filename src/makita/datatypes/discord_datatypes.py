"""
Discord identifier helpers.

Discord snowflakes are unsigned 64-bit integers, SQLite integers are signed
64-bit. ``to_sql_id`` / ``from_sql_id`` reinterpret the bits so any snowflake
round-trips through the database unchanged.
"""

from __future__ import annotations

from typing import Iterable, List

GuildID = int
ChannelID = int
RoleID = int
UserID = int
MessageID = int

_U64 = 1 << 64
_I64_MAX = (1 << 63) - 1


def to_sql_id(value: int) -> int:
    """Convert an unsigned snowflake into the signed form stored in SQLite."""
    value = int(value)
    if value < 0 or value >= _U64:
        raise ValueError(f"Snowflake out of range: {value}")
    return value - _U64 if value > _I64_MAX else value


def from_sql_id(value: int) -> int:
    """Convert a signed SQLite integer back into an unsigned snowflake."""
    value = int(value)
    return value + _U64 if value < 0 else value


def to_sql_ids(values: Iterable[int]) -> List[int]:
    return [to_sql_id(v) for v in values]


def from_sql_ids(values: Iterable[int]) -> List[int]:
    return [from_sql_id(v) for v in values]


def mention_user(user_id: UserID) -> str:
    return f"<@{user_id}>"


def mention_role(role_id: RoleID) -> str:
    return f"<@&{role_id}>"


def mention_channel(channel_id: ChannelID) -> str:
    return f"<#{channel_id}>"
