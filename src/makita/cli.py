"""
Command line interface.

``makita run`` (the default) starts the bot, ``makita init`` writes a config
file interactively and ``makita invite`` prints the bot's OAuth invite link.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from prompt_toolkit import prompt
from prompt_toolkit.validation import Validator

from makita.configuration.app_configuration import CONFIG_PATH, BotConfig, load_config, write_config
from makita.errors import ConfigError
from makita.util.format_utils import invite_url
from makita.util.logger import get_logger

logger = get_logger("cli")

DEFAULT_DATABASE_URL = "sqlite:///data/makita.db"

_id_validator = Validator.from_callable(
    lambda text: text.strip().isdigit(),
    error_message="Must be a numeric Discord id",
    move_cursor_to_end=True,
)
_optional_id_validator = Validator.from_callable(
    lambda text: not text.strip() or text.strip().isdigit(),
    error_message="Must be a numeric Discord id or empty",
    move_cursor_to_end=True,
)
_required_validator = Validator.from_callable(
    lambda text: bool(text.strip()),
    error_message="Required",
    move_cursor_to_end=True,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="makita", description="Makita Discord bot")
    parser.add_argument(
        "-c", "--config", type=Path, default=CONFIG_PATH, help="Path to config.yml (default: %(default)s)"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot (default)")
    subparsers.add_parser("init", help="Create a config file interactively")

    invite = subparsers.add_parser("invite", help="Print the bot invite link")
    invite.add_argument("-i", "--id", type=int, dest="client_id", help="Client id (default: from config)")
    return parser


def prompt_config() -> BotConfig:
    """Ask for each config value on the terminal."""
    token = prompt("Bot token: ", is_password=True, validator=_required_validator).strip()
    client_id = int(prompt("Client id: ", validator=_id_validator))
    owner_id = int(prompt("Owner user id: ", validator=_id_validator))
    database_url = prompt("Database url: ", default=DEFAULT_DATABASE_URL, validator=_required_validator).strip()
    commands_guild = prompt("Register commands to a single guild (id, blank for global): ",
                            validator=_optional_id_validator).strip()
    host_addr = prompt("Host address (blank for none): ").strip()
    return BotConfig(
        token=token,
        client_id=client_id,
        owner_id=owner_id,
        database_url=database_url,
        host_addr=host_addr or None,
        commands_guild=int(commands_guild) if commands_guild else None,
    )


def cmd_init(config_path: Path) -> int:
    if config_path.exists():
        answer = prompt(f"{config_path} exists. Overwrite? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Aborted.")
            return 1
    write_config(prompt_config(), config_path)
    print(f"Wrote {config_path}")
    return 0


def cmd_invite(config_path: Path, client_id: Optional[int]) -> int:
    if client_id is None:
        try:
            client_id = load_config(config_path).client_id
        except ConfigError as exc:
            logger.error("%s (pass -i to skip the config file)", exc)
            return 1
    print(invite_url(client_id))
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if args.command is None:
        args.command = "run"
    return args
