"""Tests for the permission registry: checks, grants and persistence."""

import pytest

from makita.datatypes.permission_datatypes import DEFAULT_NATIVE_FLOORS, PermissionType
from makita.datatypes.task_datatypes import GuildDestroyed, Kill
from makita.errors import Generic
from makita.settings.permissions_manager import PermissionsManager
from helpers import make_role, spin

GUILD = 10
OWNER = 1
MEMBER = 100


class TestCheck:
    """Checks that never touch the database."""

    @pytest.mark.asyncio
    async def test_owner_bypasses_every_check(self):
        manager = PermissionsManager()
        assert await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, OWNER, []) is None

    @pytest.mark.asyncio
    async def test_sudo_user_bypasses_every_check(self):
        manager = PermissionsManager()
        manager.add_sudo(MEMBER)
        assert await manager.check(PermissionType.MANAGE_PERMISSIONS, GUILD, OWNER, MEMBER, []) is None

    @pytest.mark.asyncio
    async def test_member_without_roles_is_denied(self):
        manager = PermissionsManager()
        missing = await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [])
        assert missing is PermissionType.TIMEOUT

    @pytest.mark.asyncio
    async def test_native_floor_grants_permission(self):
        manager = PermissionsManager()
        moderator = make_role(5, moderate_members=True)
        assert await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [moderator]) is None

    @pytest.mark.asyncio
    async def test_floor_needs_every_bit(self):
        manager = PermissionsManager()
        helper = make_role(5, manage_messages=True)
        missing = await manager.check(PermissionType.MANAGE_PREVIEWS, GUILD, OWNER, MEMBER, [helper])
        assert missing is PermissionType.MANAGE_PREVIEWS

    @pytest.mark.asyncio
    async def test_administrator_implies_every_kind(self):
        manager = PermissionsManager()
        admin = make_role(5, administrator=True)
        for kind in PermissionType:
            assert await manager.check(kind, GUILD, OWNER, MEMBER, [admin]) is None

    @pytest.mark.asyncio
    async def test_first_check_populates_defaults(self):
        manager = PermissionsManager()
        await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [])
        assert GUILD in manager.cache
        record = await manager.snapshot(GUILD, PermissionType.TIMEOUT)
        assert record.native == DEFAULT_NATIVE_FLOORS[PermissionType.TIMEOUT]
        assert record.roles == [] and record.users == []

    def test_sudo_add_remove_list(self):
        manager = PermissionsManager()
        assert manager.add_sudo(3) is True
        assert manager.add_sudo(3) is False
        manager.add_sudo(2)
        assert manager.list_sudo() == [2, 3]
        assert manager.remove_sudo(3) is True
        assert manager.remove_sudo(3) is False


class TestMutations:
    @pytest.mark.asyncio
    async def test_role_grant_allows_member_holding_role(self, db):
        manager = PermissionsManager(db)
        await manager.add(GUILD, PermissionType.TIMEOUT, role_id=77)

        plain_role = make_role(77)
        assert await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [plain_role]) is None
        assert await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [make_role(78)]) is PermissionType.TIMEOUT

    @pytest.mark.asyncio
    async def test_administrator_user_grant_implies_other_kinds(self, db):
        manager = PermissionsManager(db)
        await manager.add(GUILD, PermissionType.ADMINISTRATOR, user_id=MEMBER)
        assert await manager.check(PermissionType.CREATE_ARCHIVE, GUILD, OWNER, MEMBER, []) is None

    @pytest.mark.asyncio
    async def test_zero_native_disables_floor(self, db):
        manager = PermissionsManager(db)
        await manager.set_native(GUILD, PermissionType.TIMEOUT, 0)
        moderator = make_role(5, moderate_members=True)
        missing = await manager.check(PermissionType.TIMEOUT, GUILD, OWNER, MEMBER, [moderator])
        assert missing is PermissionType.TIMEOUT

    @pytest.mark.asyncio
    async def test_grants_stay_sorted_and_unique(self, db):
        manager = PermissionsManager(db)
        for user_id in (30, 10, 20, 10):
            await manager.add(GUILD, PermissionType.TIMEOUT, user_id=user_id)
        record = await manager.snapshot(GUILD, PermissionType.TIMEOUT)
        assert record.users == [10, 20, 30]

    @pytest.mark.asyncio
    async def test_add_requires_user_or_role(self, db):
        manager = PermissionsManager(db)
        with pytest.raises(Generic, match="Must specify either"):
            await manager.add(GUILD, PermissionType.TIMEOUT)

    @pytest.mark.asyncio
    async def test_remove_reports_user_and_role_independently(self, db):
        manager = PermissionsManager(db)
        await manager.add(GUILD, PermissionType.TIMEOUT, user_id=5)

        result = await manager.remove(GUILD, PermissionType.TIMEOUT, user_id=5, role_id=9)

        assert result.user_found is True
        assert result.role_found is False
        record = await manager.snapshot(GUILD, PermissionType.TIMEOUT)
        assert record.users == []

    @pytest.mark.asyncio
    async def test_records_survive_reload(self, db, broadcast):
        big_id = (1 << 64) - 5
        first = PermissionsManager(db)
        await first.add(GUILD, PermissionType.MANAGE_PREVIEWS, user_id=big_id, role_id=4)
        await first.set_native(GUILD, PermissionType.MANAGE_PREVIEWS, 32)

        second = PermissionsManager(db)
        task = await second.initialize(broadcast)

        record = await second.snapshot(GUILD, PermissionType.MANAGE_PREVIEWS)
        assert record.native == 32
        assert record.users == [big_id]
        assert record.roles == [4]

        broadcast.send(Kill())
        await task

    @pytest.mark.asyncio
    async def test_guild_destroyed_evicts_entry(self, db, broadcast):
        manager = PermissionsManager(db)
        task = await manager.initialize(broadcast)
        await manager.add(GUILD, PermissionType.TIMEOUT, user_id=5)

        broadcast.send(GuildDestroyed(GUILD))
        await spin()

        assert GUILD not in manager.cache
        assert not task.done()
        broadcast.send(Kill())
        await task
