# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Query config loading tests."""

import json
import logging

import pytest
from pydantic import ValidationError

from ftquery.query.filter_query import FilterQuery
from ftquery.utils.config import (
    CONFIG_ENV_VAR,
    QueryConfig,
    get_query_config,
    load_query_config,
    reset_query_config,
    set_query_config,
)


def test_defaults():
    config = get_query_config()
    assert config.dialect == 2
    assert config.num_results == 10
    assert config.text_scorer == "BM25STD"
    assert config.hybrid_alpha == 0.7
    assert config.stopwords_language == "english"
    assert config.distance_alias == "vector_distance"


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        QueryConfig(hybrid_alpha=1.5)
    with pytest.raises(ValidationError):
        QueryConfig(num_results=0)
    with pytest.raises(ValidationError):
        QueryConfig(text_scorer="  ")
    with pytest.raises(ValidationError):
        QueryConfig(unknown_option=True)


def test_config_is_frozen():
    config = QueryConfig()
    with pytest.raises(ValidationError):
        config.dialect = 3


def test_load_from_file(tmp_path, caplog):
    path = tmp_path / "ftquery.json"
    path.write_text(json.dumps({"dialect": 3, "num_results": 25, "log_level": "info"}))

    with caplog.at_level(logging.INFO, logger="ftquery"):
        config = load_query_config(path)

    assert config.dialect == 3
    assert config.num_results == 25
    assert config.log_level == "INFO"
    assert "Loaded query config" in caplog.text


def test_env_var_selects_config_file(tmp_path, monkeypatch):
    path = tmp_path / "ftquery.json"
    path.write_text(json.dumps({"text_scorer": "TFIDF"}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    reset_query_config()

    assert get_query_config().text_scorer == "TFIDF"


def test_set_config_changes_query_defaults():
    set_query_config(QueryConfig(num_results=3, dialect=4))

    query = FilterQuery()

    assert query.num_results == 3
    assert query.dialect == 4


def test_explicit_arguments_override_config():
    set_query_config(QueryConfig(num_results=3))

    assert FilterQuery(num_results=7).num_results == 7


def test_reset_restores_defaults():
    set_query_config(QueryConfig(num_results=3))
    reset_query_config()

    assert get_query_config().num_results == 10
