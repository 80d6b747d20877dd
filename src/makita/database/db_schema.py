"""
Schema creation for the bot's SQLite file.

All identifiers are stored as signed 64-bit integers (see
``makita.datatypes.discord_datatypes.to_sql_id``). Related rows are removed
explicitly by the guild sweep, so no foreign keys are declared.
"""

import aiosqlite

from makita.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates tables and indexes and records the schema version."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # expiration: unix seconds, NULL while the bot is in the guild
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guilds (
                id INTEGER PRIMARY KEY,
                expiration INTEGER
            )
        """)

        # roles / users: JSON arrays of signed ids
        await db.execute("""
            CREATE TABLE IF NOT EXISTS permissions (
                guild_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                overwrites INTEGER NOT NULL,
                roles TEXT NOT NULL DEFAULT '[]',
                users TEXT NOT NULL DEFAULT '[]',
                PRIMARY KEY (guild_id, type)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS preview_channels (
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                PRIMARY KEY (guild_id, channel_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS archive_channel (
                guild_id INTEGER PRIMARY KEY,
                channel_id INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_guilds_expiration ON guilds(expiration)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
