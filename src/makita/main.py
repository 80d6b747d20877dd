"""
Makita Discord Bot
==================

A Discord bot that previews linked messages, archives messages on request,
manages per-server command permissions and times out members.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from makita.cli import cmd_init, cmd_invite, parse_args
from makita.configuration.app_configuration import BotConfig, load_config
from makita.core.bot import MakitaBot, create_bot
from makita.database.db_connection import db_connection, resolve_database_path
from makita.datatypes.task_datatypes import Kill
from makita.errors import ConfigError
from makita.scheduler.guild_cleanup import CLEANUP_INTERVAL_SECONDS, CleanupReport, guild_cleanup
from makita.scheduler.periodic_task import PeriodicTask
from makita.scheduler.task_broadcast import TaskBroadcast
from makita.settings.permissions_manager import permissions_manager
from makita.settings.previews_manager import previews_manager
from makita.ui.console import ConsoleControl, close_bot_instance, console_session
from makita.util.logger import get_logger, handle_exception


logger = get_logger("main")

RESTART_EXIT_CODE = 42
SHUTDOWN_TIMEOUT_SECONDS = 60


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MAKITA_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("MAKITA_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


def make_sweep(bot: MakitaBot, broadcast: TaskBroadcast):
    """Bind the guild cleanup sweep to the bot's gateway cache."""

    async def sweep() -> CleanupReport:
        # Before READY the guild cache is empty and every guild would look departed
        if not bot.is_ready():
            logger.warning("[GUILD CLEANUP] Bot not ready; skipping sweep")
            return CleanupReport()
        return await guild_cleanup(db_connection, [guild.id for guild in bot.guilds], broadcast)

    return sweep


async def start_bot(bot: MakitaBot, token: str) -> None:
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(
    bot: Optional[MakitaBot],
    broadcast: TaskBroadcast,
    subscriber_tasks: List[asyncio.Task],
) -> None:
    """Broadcast Kill, close the bot, wait for subscribers, then close the database."""
    receivers = broadcast.send(Kill()) if not broadcast.closed else 0
    logger.debug("Kill sent to %d subscribers", receivers)

    await close_bot_instance(bot, log_close=True)

    pending = [task for task in subscriber_tasks if not task.done()]
    if pending:
        _, still_running = await asyncio.wait(pending, timeout=SHUTDOWN_TIMEOUT_SECONDS)
        for task in still_running:
            logger.warning("Task %s did not stop within %ss; cancelling", task.get_name(), SHUTDOWN_TIMEOUT_SECONDS)
            task.cancel()
    broadcast.close()

    try:
        await db_connection.close()
    except Exception as exc:
        logger.exception("Error while closing database: %s", exc)

    logger.info("Shutdown complete.")


async def run_bot_session(bot: MakitaBot, token: str, control: ConsoleControl) -> int:
    """Run the bot alongside the console, returning an exit code."""
    control.set_bot(bot)
    exit_code = 0

    try:
        async with console_session(control):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)

    return exit_code


async def async_main(config: BotConfig) -> int:
    """Open storage, load registries, run the bot and shut everything down."""
    try:
        await db_connection.open(resolve_database_path(config.database_url))
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    broadcast = TaskBroadcast()
    subscriber_tasks: List[asyncio.Task] = []
    bot: Optional[MakitaBot] = None

    try:
        subscriber_tasks.append(await permissions_manager.initialize(broadcast))
        subscriber_tasks.append(await previews_manager.initialize(broadcast))
        bot = create_bot(config, permissions_manager, previews_manager)
    except Exception as exc:
        logger.critical("Failed to initialize bot: %s", exc)
        await shutdown_runtime(bot, broadcast, subscriber_tasks)
        return 1

    sweep = make_sweep(bot, broadcast)
    cleanup = PeriodicTask("GUILD CLEANUP", sweep, CLEANUP_INTERVAL_SECONDS, broadcast)
    subscriber_tasks.append(cleanup.start())

    control = ConsoleControl(permissions_manager, sweep)
    try:
        exit_code = await run_bot_session(bot, config.token, control)
    finally:
        await shutdown_runtime(bot, broadcast, subscriber_tasks)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    return exit_code


def run(config_path: Path) -> int:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        logger.critical("%s", exc)
        return 1

    logger.info("Starting Makita…")
    exit_code = asyncio.run(async_main(config))

    if exit_code == RESTART_EXIT_CODE:
        logger.info("Restart requested; replacing current process with new instance.")
        # execv keeps stdin/stdout so the console keeps working after restart
        os.execv(sys.executable, [sys.executable] + sys.argv)

    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console script entry point. Returns the process exit code."""
    sys.excepthook = handle_exception
    os.chdir(resolve_base_dir())
    args = parse_args(argv)

    try:
        if args.command == "init":
            return cmd_init(args.config)
        if args.command == "invite":
            return cmd_invite(args.config, args.client_id)
        return run(args.config)
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
