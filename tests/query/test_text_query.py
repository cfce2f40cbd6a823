# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Full-text query tests."""

import pytest

from ftquery.errors import InvalidEnumValueError, MissingValueError, OutOfRangeError
from ftquery.query.filter import Filter
from ftquery.query.stopwords import available_languages
from ftquery.query.text import TextQuery, tokenize


def test_single_field():
    assert TextQuery("Redis search", "title").query_string() == "@title:(redis | search)"


def test_weighted_field():
    query = TextQuery("Redis search", {"title": 5})
    assert query.query_string() == "@title:(redis | search) => { $weight: 5.0 }"


def test_default_weight_is_not_rendered():
    assert TextQuery("redis", {"title": 1.0}).query_string() == "@title:(redis)"


def test_multiple_fields():
    query = TextQuery("redis search", {"title": 3.0, "body": 1.0})
    assert query.query_string() == (
        "(@title:(redis | search) => { $weight: 3.0 } | @body:(redis | search))"
    )


def test_filter_is_and_joined():
    query = TextQuery("redis", "title", filter_expression=Filter.tag("genre", "comedy"))
    assert query.query_string() == "@title:(redis) AND @genre:{comedy}"


def test_wildcard_filter_is_dropped():
    assert TextQuery("redis", "title", filter_expression="*").query_string() == "@title:(redis)"


def test_tokens_are_cleaned_and_escaped():
    assert tokenize("  Hello, world,  foo-bar ") == ["hello", "world", "foo\\-bar"]
    assert tokenize("“quoted”") == ["quoted"]


def test_stopwords_removed():
    query = TextQuery("the redis of search", "title", stopwords="english")
    assert query.query_string() == "@title:(redis | search)"


def test_custom_stopwords():
    query = TextQuery("redis search engine", "title", stopwords=["Engine"])
    assert query.query_string() == "@title:(redis | search)"


def test_only_stopwords_rejected():
    with pytest.raises(MissingValueError):
        TextQuery("the a of", "title", stopwords="english")


def test_unknown_stopword_language_rejected():
    with pytest.raises(InvalidEnumValueError, match="english"):
        TextQuery("redis", "title", stopwords="klingon")
    assert available_languages() == ["english"]


def test_blank_text_rejected():
    with pytest.raises(MissingValueError):
        TextQuery("   ", "title")
    with pytest.raises(MissingValueError):
        TextQuery(None, "title")


def test_weights_validated_at_configuration():
    with pytest.raises(OutOfRangeError):
        TextQuery("redis", {"title": 0})
    with pytest.raises(OutOfRangeError):
        TextQuery("redis", {"title": -2.0})
    with pytest.raises(MissingValueError):
        TextQuery("redis", {})


def test_non_finite_weights_rejected():
    with pytest.raises(OutOfRangeError):
        TextQuery("redis", {"title": float("inf")})
    with pytest.raises(OutOfRangeError):
        TextQuery("redis", {"title": float("nan")})

    query = TextQuery("redis", {"title": 2.0})
    with pytest.raises(OutOfRangeError):
        query.set_field_weights({"title": float("nan")})
    assert query.query_string() == "@title:(redis) => { $weight: 2.0 }"


def test_set_field_weights():
    query = TextQuery("redis", "title")
    query.set_field_weights({"body": 2})
    assert query.query_string() == "@body:(redis) => { $weight: 2.0 }"

    with pytest.raises(OutOfRangeError):
        query.set_field_weights({"body": -1})
    assert query.field_weights == {"body": 2.0}


def test_field_weights_returns_copy():
    query = TextQuery("redis", {"title": 2.0})
    query.field_weights["title"] = 9.0
    assert query.field_weights == {"title": 2.0}


def test_scorer_in_compiled_args():
    args = TextQuery("redis", "title").compile().to_args()
    assert args[args.index("SCORER") + 1] == "BM25STD"

    args = TextQuery("redis", "title", text_scorer="TFIDF").compile().to_args()
    assert args[args.index("SCORER") + 1] == "TFIDF"


def test_builder():
    query = (
        TextQuery.builder()
        .text("redis search")
        .text_field_weights({"title": 2.0, "body": 1.0})
        .scorer("BM25")
        .num_results(5)
        .sort_by("year", "desc")
        .build()
    )

    assert query.text_scorer == "BM25"
    assert query.num_results == 5
    assert query.sort_by.field_name == "year"
    assert query.query_string().startswith("(@title:(redis | search) => { $weight: 2.0 } | ")


def test_builder_rejects_bad_weight_immediately():
    with pytest.raises(OutOfRangeError):
        TextQuery.builder().text_field_weights({"title": 0})


def test_builder_requires_text_and_field():
    with pytest.raises(MissingValueError):
        TextQuery.builder().text("redis").build()
