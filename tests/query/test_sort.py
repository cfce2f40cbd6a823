# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Sort specification normalization tests."""

import logging

import pytest

from ftquery.errors import InvalidEnumValueError, MissingValueError
from ftquery.query.sort import SortField, normalize_direction, normalize_sort_spec, parse_sort_spec


def test_bare_field_defaults_to_ascending():
    assert normalize_sort_spec("price") == SortField("price", True)


def test_field_direction_pair():
    assert normalize_sort_spec(("price", "desc")) == SortField("price", False)
    assert normalize_sort_spec("price", "DESC").direction == "DESC"


def test_sort_field_passthrough():
    field = SortField.desc("rating")
    assert normalize_sort_spec(field) is field


def test_list_keeps_first_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="ftquery"):
        result = normalize_sort_spec([SortField.desc("a"), SortField.asc("b"), "c"])

    assert result == SortField("a", False)
    assert "Multiple sort fields specified (3)" in caplog.text
    assert "'b'" in caplog.text


def test_tuple_of_sort_fields_is_a_list():
    result = normalize_sort_spec((SortField.asc("a"), SortField.desc("b")))
    assert result == SortField("a", True)


def test_empty_list_means_no_sort():
    assert normalize_sort_spec([]) is None
    assert normalize_sort_spec(None) is None


def test_single_item_list_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING, logger="ftquery"):
        assert normalize_sort_spec([("a", "asc")]) == SortField("a", True)
    assert caplog.text == ""


def test_direction_validation():
    assert normalize_direction(" asc ") == "ASC"
    with pytest.raises(InvalidEnumValueError):
        normalize_direction("sideways")
    with pytest.raises(InvalidEnumValueError):
        normalize_sort_spec(("price", "up"))


def test_blank_field_rejected():
    with pytest.raises(MissingValueError):
        SortField("")
    with pytest.raises(MissingValueError):
        SortField.asc("  ")


def test_field_name_is_trimmed():
    assert SortField(" price ").field_name == "price"


def test_parse_sort_spec_returns_all_fields():
    fields = parse_sort_spec(["a", ("b", "desc")])
    assert fields == [SortField("a", True), SortField("b", False)]


def test_unsupported_item_rejected():
    with pytest.raises(InvalidEnumValueError):
        parse_sort_spec([42])
    with pytest.raises(MissingValueError):
        parse_sort_spec([None])
