# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Escaping and literal formatting tests."""

import re

import pytest

from ftquery.errors import MissingValueError, OutOfRangeError, QueryValidationError
from ftquery.utils.escaping import (
    TokenEscaper,
    escape_field_name,
    escape_tag_value,
    escape_text,
    format_float,
    format_geo,
    format_number,
)


def test_escape_text_leaves_plain_words_and_spaces():
    assert escape_text("hello world") == "hello world"


def test_escape_text_special_characters():
    assert escape_text("a-b@c") == "a\\-b\\@c"
    assert escape_text("user:name") == "user\\:name"
    assert escape_text("50%") == "50\\%"
    assert escape_text("a.b,c") == "a\\.b\\,c"


def test_escape_text_backslash():
    assert escape_text("a\\b") == "a\\\\b"


def test_escape_text_prefixes_every_special_character_once():
    specials = "-@:*[](){}+~\"'/%<>=|&^$.,!?;\\"
    for ch in specials:
        assert escape_text(ch) == "\\" + ch
        assert escape_text(f"a{ch}b") == f"a\\{ch}b"
    assert escape_text(specials) == "".join("\\" + ch for ch in specials)


def test_escape_tag_value_escapes_spaces():
    assert escape_tag_value("new york") == "new\\ york"
    assert escape_tag_value("sci-fi") == "sci\\-fi"


def test_token_escaper_custom_pattern():
    escaper = TokenEscaper(re.compile(r"[#]"))
    assert escaper.escape("a#b-c") == "a\\#b-c"


def test_token_escaper_rejects_none_and_non_strings():
    escaper = TokenEscaper()
    with pytest.raises(MissingValueError):
        escaper.escape(None)
    with pytest.raises(QueryValidationError):
        escaper.escape(5)


def test_escape_field_name_path_style():
    assert escape_field_name("$.user.age") == "\\$\\.user\\.age"


def test_escape_field_name_plain_names_untouched():
    assert escape_field_name("age") == "age"
    assert escape_field_name("user.age") == "user.age"


def test_format_number_integers_and_integral_floats():
    assert format_number(5) == "5"
    assert format_number(5.0) == "5"
    assert format_number(-3.0) == "-3"


def test_format_number_fractions():
    assert format_number(2.5) == "2.5"
    assert format_number(0.1) == "0.1"


def test_format_number_infinity():
    assert format_number(float("inf")) == "+inf"
    assert format_number(float("-inf")) == "-inf"


def test_format_number_rejects_invalid_values():
    with pytest.raises(OutOfRangeError):
        format_number(float("nan"))
    with pytest.raises(QueryValidationError):
        format_number(True)
    with pytest.raises(MissingValueError):
        format_number(None)


def test_format_float_keeps_fraction():
    assert format_float(2) == "2.0"
    assert format_float(0.25) == "0.25"


def test_format_geo_six_decimals():
    assert format_geo(1.5) == "1.500000"
    assert format_geo(-122) == "-122.000000"
