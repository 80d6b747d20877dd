"""
Domain errors surfaced to users.

Every ``BotError`` carries a message that is safe to show verbatim in Discord.
Anything that is not a ``BotError`` (database failures, HTTP errors, bugs) is
treated as internal by the router and only shown with a generic prefix.

Internal codes in use: 0-13. Pick the next free number for a new call site.
"""

from __future__ import annotations


class BotError(Exception):
    """Base class for errors whose message is meant for the invoking user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class Generic(BotError):
    """Free-form user-facing message."""


class Internal(BotError):
    """A condition that should never happen; ``code`` identifies the call site."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Internal error code `{code}`")
        self.code = code


class GuildOnly(BotError):
    def __init__(self) -> None:
        super().__init__("Command must be run in a server")


class CacheMissing(BotError):
    """The gateway cache lacked data we needed. Usually transient."""

    def __init__(self) -> None:
        super().__init__("Cache failure, please try again later")


class InvalidRequest(BotError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid request: `{detail}`")
        self.detail = detail


class WrongGuild(BotError):
    def __init__(self) -> None:
        super().__init__("Can't refer to data from another server")


class NotFound(BotError):
    def __init__(self, what: str) -> None:
        super().__init__(f"{what} not found")
        self.what = what


class ConfigError(Exception):
    """Raised at start-up when the configuration file is missing or invalid."""
