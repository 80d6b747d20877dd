"""Tests for message link detection."""

import pytest

from makita.datatypes.preview_datatypes import MessageLink
from makita.errors import Generic, Internal
from makita.previews.link_parser import find_message_links, iter_link_matches, link_from_match, parse_message_link


def test_finds_every_link_in_order():
    text = (
        "see https://discord.com/channels/1/2/3 and "
        "https://ptb.discord.com/channels/4/5/6 plus https://discordapp.com/channels/7/8/9"
    )
    assert find_message_links(text) == [MessageLink(1, 2, 3), MessageLink(4, 5, 6), MessageLink(7, 8, 9)]


def test_ignores_channel_links_and_other_hosts():
    assert find_message_links("https://discord.com/channels/1/2 https://example.com/channels/1/2/3") == []


def test_out_of_range_id_reports_its_group():
    huge = str(1 << 64)
    match = next(iter_link_matches(f"https://discord.com/channels/1/{huge}/3"))
    with pytest.raises(Internal) as exc_info:
        link_from_match(match)
    assert exc_info.value.code == 3


def test_view_parser_uses_its_own_codes():
    huge = str(1 << 64)
    with pytest.raises(Internal) as exc_info:
        parse_message_link(f"https://discord.com/channels/{huge}/2/3")
    assert exc_info.value.code == 7


def test_view_parser_takes_first_link():
    link = parse_message_link("https://discord.com/channels/1/2/3 https://discord.com/channels/4/5/6")
    assert link == MessageLink(1, 2, 3)
    assert link.url == "https://discord.com/channels/1/2/3"


def test_malformed_link():
    with pytest.raises(Generic, match="Malformed link"):
        parse_message_link("not a link")
