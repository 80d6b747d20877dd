"""
Daily sweep of durable guild records.

Guilds the bot is no longer connected to get an expiration 90 days out.
Once that passes, the guild row and every related row are deleted and a
``GuildDestroyed`` notice tells the in-memory registries to drop the guild.
Rejoining before expiry clears the mark (see ``GuildsRepository.upsert_active``).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Collection, List, Optional

from makita.database.db_connection import ConnectionManager
from makita.datatypes.discord_datatypes import GuildID
from makita.datatypes.task_datatypes import GuildDestroyed
from makita.scheduler.task_broadcast import TaskBroadcast
from makita.settings.repositories import GuildsRepository, PermissionsRepository, PreviewsRepository
from makita.util.logger import get_logger

logger = get_logger("guild_cleanup")

GUILD_RETENTION_SECONDS = 90 * 24 * 60 * 60
CLEANUP_INTERVAL_SECONDS = 24 * 60 * 60

guilds_repo = GuildsRepository()
permissions_repo = PermissionsRepository()
previews_repo = PreviewsRepository()


@dataclass(slots=True)
class CleanupReport:
    marked: List[GuildID] = field(default_factory=list)
    destroyed: List[GuildID] = field(default_factory=list)


async def guild_cleanup(
    connection: ConnectionManager,
    connected_guild_ids: Collection[GuildID],
    broadcast: TaskBroadcast,
    now: Optional[int] = None,
) -> CleanupReport:
    """
    Mark departed guilds for expiry and purge expired ones.

    Args:
        connection: Open connection manager.
        connected_guild_ids: Guilds currently in the gateway cache.
        broadcast: Receives one ``GuildDestroyed`` per purged guild.
        now: Unix seconds; defaults to the current time.
    """
    now = int(time.time()) if now is None else int(now)
    connected = set(connected_guild_ids)
    report = CleanupReport()

    logger.debug("[GUILD CLEANUP] Starting sweep (%d connected guilds)", len(connected))

    async with connection.transaction() as conn:
        unmarked = await guilds_repo.unmarked_guild_ids(conn)
        report.marked = sorted(g for g in unmarked if g not in connected)
        if report.marked:
            await guilds_repo.set_expiration(conn, report.marked, now + GUILD_RETENTION_SECONDS)

    for guild_id in report.marked:
        logger.info("[GUILD CLEANUP] Marked guild %s for cleanup", guild_id)

    async with connection.transaction() as conn:
        report.destroyed = sorted(await guilds_repo.expired_guild_ids(conn, now))
        if report.destroyed:
            await permissions_repo.delete_for_guilds(conn, report.destroyed)
            await previews_repo.delete_for_guilds(conn, report.destroyed)
            await guilds_repo.delete(conn, report.destroyed)

    # Notices go out only after the rows are gone
    for guild_id in report.destroyed:
        logger.info("[GUILD CLEANUP] Deleting guild %s", guild_id)
        broadcast.send(GuildDestroyed(guild_id))

    return report
