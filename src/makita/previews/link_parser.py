"""Detection of Discord message links in free text."""

from __future__ import annotations

import re
from typing import Iterator, List

from makita.datatypes.preview_datatypes import MessageLink
from makita.errors import Generic, Internal

MESSAGE_LINK_PATTERN = re.compile(r"https://(?:\w+\.)?discord(?:app)?.com/channels/(\d+)/(\d+)/(\d+)")

_SNOWFLAKE_LIMIT = 1 << 64

# Internal error codes: each captured id gets a "missing" and an "out of range" code
SCAN_ERROR_BASE = 0
VIEW_ERROR_BASE = 6


def _capture_id(match: re.Match, group: int, error_base: int) -> int:
    text = match.group(group)
    code = error_base + (group - 1) * 2
    if text is None:
        raise Internal(code)
    value = int(text)
    if value >= _SNOWFLAKE_LIMIT:
        raise Internal(code + 1)
    return value


def link_from_match(match: re.Match, error_base: int = SCAN_ERROR_BASE) -> MessageLink:
    return MessageLink(
        guild_id=_capture_id(match, 1, error_base),
        channel_id=_capture_id(match, 2, error_base),
        message_id=_capture_id(match, 3, error_base),
    )


def iter_link_matches(text: str) -> Iterator[re.Match]:
    return MESSAGE_LINK_PATTERN.finditer(text)


def find_message_links(text: str) -> List[MessageLink]:
    """Every message link in ``text``, in order of appearance."""
    return [link_from_match(match) for match in iter_link_matches(text)]


def parse_message_link(text: str) -> MessageLink:
    """The first message link in ``text``; ``Generic("Malformed link")`` if there is none."""
    match = MESSAGE_LINK_PATTERN.search(text)
    if match is None:
        raise Generic("Malformed link")
    return link_from_match(match, VIEW_ERROR_BASE)
