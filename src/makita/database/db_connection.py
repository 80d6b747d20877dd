"""
Shared aiosqlite connection for the whole process.

The bot opens one WAL-mode connection at start-up and closes it last during
shutdown. Writes go through ``transaction()``, which serialises them with a
semaphore and commits or rolls back as a unit. Reads use ``read()`` and take no
lock.

Usage::

    await db_connection.open(resolve_database_path(config.database_url))

    async with db_connection.transaction() as conn:
        await guilds_repo.upsert_active(conn, guild_id)

    async with db_connection.read() as conn:
        rows = await permissions_repo.load_all(conn)

    await db_connection.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import aiosqlite

from makita.database.db_schema import SchemaManager
from makita.util.logger import get_logger

logger = get_logger("database_connection")

SQLITE_URL_PREFIX = "sqlite://"

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA busy_timeout = 5000",
)


def resolve_database_path(database_url: str) -> Path:
    """
    Accept either a bare file path or a ``sqlite:///path`` URL.

    ``sqlite:///data/makita.db`` is relative, ``sqlite:////var/lib/makita.db``
    is absolute.
    """
    url = database_url.strip()
    if url.startswith(SQLITE_URL_PREFIX):
        url = url[len(SQLITE_URL_PREFIX):]
        if url.startswith("/"):
            url = url[1:]
    if not url:
        raise ValueError("database_url does not name a file")
    return Path(url)


class ConnectionManager:
    """Owns the single aiosqlite connection and the writer semaphore."""

    def __init__(self) -> None:
        self._conn: Optional[aiosqlite.Connection] = None
        self._write_sem = asyncio.Semaphore(1)
        self._path: Optional[Path] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Optional[Path]:
        return self._path

    async def open(self, path: Union[str, Path]) -> None:
        """Open the database file, apply pragmas and make sure the schema exists."""
        if self._conn is not None:
            logger.warning("[DB CONNECTION] open() called twice, keeping the existing connection")
            return

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(path)
        try:
            for pragma in _PRAGMAS:
                await conn.execute(pragma)
            await SchemaManager.initialize_schema(conn)
        except Exception:
            await conn.close()
            raise

        self._conn = conn
        self._path = path
        logger.info("[DB CONNECTION] Opened %s", path)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await conn.close()
            logger.info("[DB CONNECTION] Connection closed")

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database connection is not open; call db_connection.open() first")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Serialised write transaction. Commits on clean exit, rolls back on error."""
        conn = self.connection
        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        yield self.connection


db_connection = ConnectionManager()
