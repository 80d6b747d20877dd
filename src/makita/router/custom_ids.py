"""
Compact component identifiers.

Format: ``MAK;<Type>[;key=value]*``. Discord caps custom ids at 100 characters;
the builder does not check, callers keep ids short. Keys and values are not
escaped and must not contain ``;`` or ``=``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from makita.errors import InvalidRequest

CUSTOM_ID_PREFIX = "MAK"


class CustomIdType(Enum):
    LIST_PERMISSIONS = "ListPermissions"

    @classmethod
    def from_string(cls, value: str) -> "CustomIdType":
        try:
            return cls(value)
        except ValueError:
            raise InvalidRequest(f"Invalid CustomID type {value}") from None


def is_own_custom_id(custom_id: Optional[str]) -> bool:
    """True for ids this bot built; other components are ignored by the router."""
    return bool(custom_id) and custom_id.startswith(f"{CUSTOM_ID_PREFIX};")


def build_custom_id(kind: CustomIdType, args: Optional[Mapping[str, str]] = None) -> str:
    parts = [CUSTOM_ID_PREFIX, kind.value]
    if args:
        parts.extend(f"{key}={value}" for key, value in args.items())
    return ";".join(parts)


def parse_custom_id(custom_id: str) -> Tuple[CustomIdType, Dict[str, str]]:
    """
    Split an id into its type and arguments.

    Raises:
        InvalidRequest: unknown type, or an argument without ``=``.
    """
    parts = custom_id.split(";")[1:]
    if not parts:
        raise InvalidRequest(f"Invalid CustomID {custom_id}")

    args: Dict[str, str] = {}
    for item in parts[1:]:
        key, sep, value = item.partition("=")
        if not sep:
            raise InvalidRequest(f"Invalid CustomID argument {item}")
        args[key] = value

    return CustomIdType.from_string(parts[0]), args
