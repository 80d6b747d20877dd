"""Tests for the connection manager, schema and id conversion."""

from pathlib import Path

import pytest

from makita.database.db_connection import ConnectionManager, resolve_database_path
from makita.database.db_schema import SCHEMA_VERSION
from makita.datatypes.discord_datatypes import from_sql_id, to_sql_id


@pytest.mark.parametrize(
    "url, expected",
    [
        ("data/makita.db", Path("data/makita.db")),
        ("sqlite:///data/makita.db", Path("data/makita.db")),
        ("sqlite:////var/lib/makita.db", Path("/var/lib/makita.db")),
    ],
)
def test_resolve_database_path(url, expected):
    assert resolve_database_path(url) == expected


def test_resolve_database_path_rejects_empty():
    with pytest.raises(ValueError):
        resolve_database_path("sqlite:///")


@pytest.mark.parametrize("snowflake", [0, 1, (1 << 63) - 1, 1 << 63, (1 << 64) - 1])
def test_sql_id_round_trip(snowflake):
    stored = to_sql_id(snowflake)
    assert -(1 << 63) <= stored < (1 << 63)
    assert from_sql_id(stored) == snowflake


def test_sql_id_rejects_out_of_range():
    with pytest.raises(ValueError):
        to_sql_id(1 << 64)


@pytest.mark.asyncio
async def test_open_creates_schema(db):
    async with db.read() as conn:
        async with conn.execute("SELECT name FROM sqlite_master WHERE type='table'") as cursor:
            tables = {row[0] for row in await cursor.fetchall()}
        async with conn.execute("SELECT MAX(version) FROM schema_version") as cursor:
            version = (await cursor.fetchone())[0]

    assert {"guilds", "permissions", "preview_channels", "archive_channel", "schema_version"} <= tables
    assert version == SCHEMA_VERSION


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(db):
    with pytest.raises(RuntimeError):
        async with db.transaction() as conn:
            await conn.execute("INSERT INTO guilds (id, expiration) VALUES (1, NULL)")
            raise RuntimeError("abort")

    async with db.read() as conn:
        async with conn.execute("SELECT COUNT(*) FROM guilds") as cursor:
            assert (await cursor.fetchone())[0] == 0


@pytest.mark.asyncio
async def test_connection_before_open_raises():
    with pytest.raises(RuntimeError, match="not open"):
        ConnectionManager().connection


@pytest.mark.asyncio
async def test_open_creates_parent_directories(tmp_path):
    manager = ConnectionManager()
    await manager.open(tmp_path / "nested" / "dir" / "makita.db")
    try:
        assert manager.is_open
        assert (tmp_path / "nested" / "dir" / "makita.db").exists()
    finally:
        await manager.close()
    assert not manager.is_open
