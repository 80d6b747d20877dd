import pytest

from makita.errors import InvalidRequest
from makita.router.custom_ids import CustomIdType, build_custom_id, is_own_custom_id, parse_custom_id


def test_build_without_args():
    assert build_custom_id(CustomIdType.LIST_PERMISSIONS) == "MAK;ListPermissions"


def test_build_and_parse_with_args():
    custom_id = build_custom_id(CustomIdType.LIST_PERMISSIONS, {"page": "2", "kind": "Timeout"})
    assert custom_id == "MAK;ListPermissions;page=2;kind=Timeout"
    assert parse_custom_id(custom_id) == (CustomIdType.LIST_PERMISSIONS, {"page": "2", "kind": "Timeout"})


def test_empty_value_is_allowed():
    assert parse_custom_id("MAK;ListPermissions;page=") == (CustomIdType.LIST_PERMISSIONS, {"page": ""})


def test_unknown_type_is_rejected():
    with pytest.raises(InvalidRequest) as exc_info:
        parse_custom_id("MAK;Nope")
    assert exc_info.value.message == "Invalid request: `Invalid CustomID type Nope`"


def test_argument_without_separator_is_rejected():
    with pytest.raises(InvalidRequest, match="Invalid CustomID argument page"):
        parse_custom_id("MAK;ListPermissions;page")


def test_prefix_detection():
    assert is_own_custom_id("MAK;ListPermissions")
    assert not is_own_custom_id("MAKE;ListPermissions")
    assert not is_own_custom_id("other")
    assert not is_own_custom_id(None)
