from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from makita.errors import ConfigError
from makita.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/config.yml")

TOKEN_ENV = "MAKITA_TOKEN"
WEBHOOK_SECRET_ENV = "MAKITA_WEBHOOK_SECRET"

REQUIRED_KEYS = ("token", "client_id", "owner_id", "database_url")


@dataclass(frozen=True)
class BotConfig:
    """Start-up configuration. Loaded once and never mutated."""

    token: str
    client_id: int
    owner_id: int
    database_url: str
    host_addr: Optional[str] = None
    commands_guild: Optional[int] = None
    github_webhook_secret: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def _parse_id(data: Dict[str, Any], key: str, *, required: bool) -> Optional[int]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ConfigError(f"Missing required config key '{key}'")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Config key '{key}' must be an integer id, got {value!r}") from None


def parse_config(data: Dict[str, Any]) -> BotConfig:
    """Validate a raw mapping (YAML plus environment overrides) into a ``BotConfig``."""
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")

    missing = [key for key in REQUIRED_KEYS if data.get(key) in (None, "")]
    if missing:
        raise ConfigError(f"Missing required config key '{missing[0]}'")

    host_addr = data.get("host_addr")
    secret = data.get("github_webhook_secret")
    return BotConfig(
        token=str(data["token"]),
        client_id=_parse_id(data, "client_id", required=True),
        owner_id=_parse_id(data, "owner_id", required=True),
        database_url=str(data["database_url"]),
        host_addr=str(host_addr) if host_addr else None,
        commands_guild=_parse_id(data, "commands_guild", required=False),
        github_webhook_secret=str(secret) if secret else None,
    )


def load_config(path: Path = CONFIG_PATH, env_path: Optional[Path] = None) -> BotConfig:
    """
    Read ``config.yml`` and apply ``.env`` overrides.

    ``MAKITA_TOKEN`` and ``MAKITA_WEBHOOK_SECRET`` from the environment (or a
    ``.env`` file next to the working directory) take precedence over the file.

    Raises:
        ConfigError: The file is missing, not valid YAML, or lacks a required key.
    """
    load_dotenv(dotenv_path=env_path)

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file {path} not found. Run `makita init` to create one.") from None
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    if token := os.getenv(TOKEN_ENV):
        data["token"] = token
    if secret := os.getenv(WEBHOOK_SECRET_ENV):
        data["github_webhook_secret"] = secret

    config = parse_config(data)
    logger.info("[APP CONFIGURATION] Loaded config from %s", path)
    return config


def write_config(config: BotConfig, path: Path = CONFIG_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    logger.info("[APP CONFIGURATION] Wrote config to %s", path)
