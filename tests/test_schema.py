"""Tests for request-body validation."""

from __future__ import annotations

import pytest

from notioncli.errors import ErrorCode, InputError
from notioncli.schema import (
    BlockAppendBody,
    DatabaseCreateBody,
    OAuthTokenBody,
    PageCreateBody,
    SearchBody,
    ensure_valid,
    validate_body,
)


def test_valid_page_body() -> None:
    assert validate_body(PageCreateBody, {"parent": {"page_id": "p"}, "properties": {}}) == (True, [])


def test_missing_required_fields_are_listed() -> None:
    valid, errors = validate_body(PageCreateBody, {"parent": {"page_id": "p"}})
    assert valid is False
    assert errors == ["/properties Field required"]


def test_wrong_type_is_reported_with_location() -> None:
    valid, errors = validate_body(DatabaseCreateBody, {"parent": {}, "title": {}, "properties": {}})
    assert valid is False
    assert errors[0].startswith("/title ")


def test_non_object_body_reports_root() -> None:
    valid, errors = validate_body(SearchBody, ["not", "an", "object"])
    assert valid is False
    assert errors[0].startswith("(root) ")


def test_unknown_keys_pass_through() -> None:
    assert validate_body(SearchBody, {"query": "x", "future_field": 1}) == (True, [])


def test_page_size_bounds() -> None:
    assert validate_body(SearchBody, {"page_size": 100})[0] is True
    assert validate_body(SearchBody, {"page_size": 101})[0] is False


def test_append_children_is_capped() -> None:
    valid, errors = validate_body(BlockAppendBody, {"children": [{}] * 101})
    assert valid is False
    assert errors[0].startswith("/children ")


def test_ensure_valid_raises_invalid_argument() -> None:
    with pytest.raises(InputError) as excinfo:
        ensure_valid(OAuthTokenBody, {"code": "c"})
    assert excinfo.value.code is ErrorCode.INVALID_ARGUMENT
    assert excinfo.value.context == {"errors": ["/grant_type Field required"]}


def test_ensure_valid_can_be_disabled() -> None:
    ensure_valid(OAuthTokenBody, {}, enabled=False)
