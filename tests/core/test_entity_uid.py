"""Tests for diaspora.core.entity_uid."""

from datetime import datetime

import pytest

from diaspora.core.entity_uid import is_entity_uid


@pytest.mark.parametrize("value", ["abc", "1234567890abcdefg", 1, 123456, -3, 2.5])
def test_valid_entity_uid(value):
    assert is_entity_uid(value) is True


@pytest.mark.parametrize(
    "value",
    [None, "", 0, 0.0, {}, {"foo": "bar"}, [], [123], True, False, datetime(2024, 1, 1)],
)
def test_invalid_entity_uid(value):
    assert is_entity_uid(value) is False
