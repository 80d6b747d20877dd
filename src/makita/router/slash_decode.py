"""
Decoding of raw application-command payloads.

Slash commands arrive as nested options: sub-command groups and sub-commands
are options of type 2 and 1 whose own ``options`` hold the next level. The
command path is the space-joined chain of names (``"permissions add"``) and the
leaf options become a ``SlashMap`` of typed values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from discord import SlashCommandOptionType

from makita.errors import InvalidRequest

_CONTAINER_TYPES = {
    SlashCommandOptionType.sub_command.value,
    SlashCommandOptionType.sub_command_group.value,
}

_SNOWFLAKE_TYPES = {
    SlashCommandOptionType.user,
    SlashCommandOptionType.channel,
    SlashCommandOptionType.role,
    SlashCommandOptionType.mentionable,
}


def _type_name(option_type: Optional[SlashCommandOptionType]) -> str:
    if option_type is None:
        return "Unknown"
    return option_type.name.capitalize()


@dataclass(frozen=True, slots=True)
class SlashValue:
    """One leaf option. ``value`` is None when the client sent no value."""

    name: str
    option_type: Optional[SlashCommandOptionType]
    value: Any = None

    @classmethod
    def from_option(cls, option: Mapping[str, Any]) -> "SlashValue":
        try:
            option_type = SlashCommandOptionType(option.get("type"))
        except ValueError:
            option_type = None
        value = option.get("value")
        if value is not None and option_type in _SNOWFLAKE_TYPES:
            value = int(value)
        return cls(name=option["name"], option_type=option_type, value=value)

    def _expect(self, expected: SlashCommandOptionType) -> Any:
        if self.value is None:
            raise InvalidRequest(f"Missing value in field `{self.name}`")
        if self.option_type is not expected:
            raise InvalidRequest(
                f"Wrong type in field `{self.name}` "
                f"(expected `{_type_name(expected)}`, got `{_type_name(self.option_type)}`)"
            )
        return self.value

    def get_string(self) -> str:
        return str(self._expect(SlashCommandOptionType.string))

    def get_integer(self) -> int:
        return int(self._expect(SlashCommandOptionType.integer))

    def get_boolean(self) -> bool:
        return bool(self._expect(SlashCommandOptionType.boolean))

    def get_user(self) -> int:
        return self._expect(SlashCommandOptionType.user)

    def get_channel(self) -> int:
        return self._expect(SlashCommandOptionType.channel)

    def get_role(self) -> int:
        return self._expect(SlashCommandOptionType.role)


class SlashMap(Mapping[str, SlashValue]):
    """
    Leaf options of a command keyed by name.

    Getters raise ``InvalidRequest`` for absent fields and type mismatches, so
    handlers call ``args.get_*`` directly for required options and
    ``args.optional_*`` for optional ones.
    """

    def __init__(self, values: Optional[Dict[str, SlashValue]] = None) -> None:
        self._values: Dict[str, SlashValue] = dict(values or {})

    def __getitem__(self, name: str) -> SlashValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SlashMap({self._values!r})"

    def _value(self, name: str) -> SlashValue:
        value = self._values.get(name)
        if value is None:
            raise InvalidRequest(f"Missing value in field `{name}`")
        return value

    def get_string(self, name: str) -> str:
        return self._value(name).get_string()

    def get_integer(self, name: str) -> int:
        return self._value(name).get_integer()

    def get_boolean(self, name: str) -> bool:
        return self._value(name).get_boolean()

    def get_user(self, name: str) -> int:
        return self._value(name).get_user()

    def get_channel(self, name: str) -> int:
        return self._value(name).get_channel()

    def get_role(self, name: str) -> int:
        return self._value(name).get_role()

    def optional_boolean(self, name: str, default: bool) -> bool:
        return self.get_boolean(name) if name in self._values else default

    def optional_user(self, name: str) -> Optional[int]:
        return self.get_user(name) if name in self._values else None

    def optional_role(self, name: str) -> Optional[int]:
        return self.get_role(name) if name in self._values else None

    def optional_channel(self, name: str) -> Optional[int]:
        return self.get_channel(name) if name in self._values else None


def decode_command(data: Mapping[str, Any]) -> Tuple[str, SlashMap]:
    """
    Walk a raw application-command payload into ``(path, args)``.

    >>> decode_command({"name": "permissions", "options": [
    ...     {"name": "add", "type": 1, "options": [
    ...         {"name": "permission", "type": 3, "value": "Timeout"}]}]})[0]
    'permissions add'
    """
    path = [data.get("name", "")]
    options = data.get("options") or []

    while options and options[0].get("type") in _CONTAINER_TYPES:
        path.append(options[0]["name"])
        options = options[0].get("options") or []

    values = {option["name"]: SlashValue.from_option(option) for option in options}
    return " ".join(path), SlashMap(values)
