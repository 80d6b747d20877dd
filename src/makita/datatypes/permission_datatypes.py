"""
Permission kinds and the per-guild records the permission registry caches.

Each guild holds one ``PermissionRecord`` per ``PermissionType``. A record is
satisfied by a member whose combined role permissions contain the native
floor, or by an explicit user or role grant.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

import discord

from makita.datatypes.discord_datatypes import GuildID
from makita.errors import InvalidRequest


class PermissionType(Enum):
    """Authorization categories gating bot commands."""

    ADMINISTRATOR = "Administrator"
    MANAGE_PERMISSIONS = "ManagePermissions"
    MANAGE_PREVIEWS = "ManagePreviews"
    CREATE_ARCHIVE = "CreateArchive"
    TIMEOUT = "Timeout"

    @property
    def display(self) -> str:
        return PERMISSION_DISPLAY[self][0]

    @property
    def description(self) -> str:
        return PERMISSION_DISPLAY[self][1]

    @classmethod
    def from_string(cls, value: str) -> "PermissionType":
        """Parse a stored / user supplied permission name."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidRequest(f"Invalid permission name {value}") from None


PERMISSION_DISPLAY: Dict[PermissionType, tuple[str, str]] = {
    PermissionType.ADMINISTRATOR: ("Administrator", "Access to all permissions"),
    PermissionType.MANAGE_PERMISSIONS: ("Manage Permissions", "Manage bot permissions"),
    PermissionType.MANAGE_PREVIEWS: ("Manage Previews", "Manage preview configuration"),
    PermissionType.CREATE_ARCHIVE: ("Create Archive", "Create entries in the archive channel"),
    PermissionType.TIMEOUT: ("Timeout", "Timeout users"),
}

# Native Discord permission that satisfies each kind out of the box
DEFAULT_NATIVE_FLOORS: Dict[PermissionType, int] = {
    PermissionType.ADMINISTRATOR: discord.Permissions(administrator=True).value,
    PermissionType.MANAGE_PERMISSIONS: discord.Permissions(administrator=True).value,
    PermissionType.MANAGE_PREVIEWS: discord.Permissions(manage_guild=True).value,
    PermissionType.CREATE_ARCHIVE: discord.Permissions(manage_messages=True).value,
    PermissionType.TIMEOUT: discord.Permissions(moderate_members=True).value,
}


def insert_sorted(items: List[int], value: int) -> bool:
    """Insert ``value`` keeping ``items`` sorted and unique. Returns False if already present."""
    index = bisect.bisect_left(items, value)
    if index < len(items) and items[index] == value:
        return False
    items.insert(index, value)
    return True


def remove_sorted(items: List[int], value: int) -> bool:
    """Binary-search ``value`` in sorted ``items`` and remove it. Returns False if absent."""
    index = bisect.bisect_left(items, value)
    if index < len(items) and items[index] == value:
        del items[index]
        return True
    return False


def contains_sorted(items: List[int], value: int) -> bool:
    index = bisect.bisect_left(items, value)
    return index < len(items) and items[index] == value


@dataclass(slots=True)
class PermissionRecord:
    """Native floor plus explicit grants for one permission kind in one guild."""

    native: int
    roles: List[int] = field(default_factory=list)
    users: List[int] = field(default_factory=list)

    @classmethod
    def default(cls, kind: PermissionType) -> "PermissionRecord":
        return cls(native=DEFAULT_NATIVE_FLOORS[kind])

    def copy(self) -> "PermissionRecord":
        return PermissionRecord(self.native, list(self.roles), list(self.users))

    def is_satisfied(self, combined_permissions: int, user_id: int, role_ids: List[int]) -> bool:
        if self.native > 0 and (combined_permissions & self.native) == self.native:
            return True
        if contains_sorted(self.users, user_id):
            return True
        return any(contains_sorted(self.roles, role_id) for role_id in role_ids)


@dataclass(slots=True)
class GuildPermissionEntry:
    """Cached permission data for one guild; always holds every ``PermissionType``."""

    guild_id: GuildID
    records: Dict[PermissionType, PermissionRecord]

    @classmethod
    def default(cls, guild_id: GuildID) -> "GuildPermissionEntry":
        return cls(
            guild_id=guild_id,
            records={kind: PermissionRecord.default(kind) for kind in PermissionType},
        )

    def get(self, kind: PermissionType) -> PermissionRecord:
        return self.records[kind]


@dataclass(slots=True)
class RemovalResult:
    """Outcome of a grant removal; user and role are reported independently."""

    user_found: bool = True
    role_found: bool = True
