# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for ftquery tests."""

import pytest

from ftquery.utils.config import CONFIG_ENV_VAR, reset_query_config


@pytest.fixture(autouse=True)
def default_query_config(monkeypatch):
    """Run every test against built-in defaults."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    reset_query_config()
    yield
    reset_query_config()


@pytest.fixture
def sample_vector():
    return [0.1, 0.2, 0.3]
