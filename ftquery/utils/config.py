# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Query compilation defaults.

The active configuration is loaded once from the JSON file named by
``FTQUERY_CONFIG_FILE`` when that variable is set, and from built-in defaults
otherwise. Query builders read their defaults from it.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ftquery.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "FTQUERY_CONFIG_FILE"


class QueryConfig(BaseModel):
    """Defaults applied when a query does not set the value explicitly."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    dialect: int = Field(default=2, ge=1)
    num_results: int = Field(default=10, gt=0)
    text_scorer: str = "BM25STD"
    hybrid_alpha: float = Field(default=0.7, ge=0.0, le=1.0)
    stopwords_language: Optional[str] = "english"
    distance_alias: str = "vector_distance"
    log_level: str = "WARNING"

    @field_validator("text_scorer", "distance_alias")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


_config: Optional[QueryConfig] = None
_config_lock = threading.Lock()


def load_query_config(path: Union[str, Path]) -> QueryConfig:
    """Parse a JSON config file into a :class:`QueryConfig`."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    config = QueryConfig.model_validate(data)
    logger.info("Loaded query config from %s", path)
    return config


def get_query_config() -> QueryConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is not None:
        return _config
    with _config_lock:
        if _config is None:
            config_path = os.environ.get(CONFIG_ENV_VAR)
            _config = load_query_config(config_path) if config_path else QueryConfig()
            configure_logging(_config.log_level)
    return _config


def set_query_config(config: QueryConfig) -> None:
    """Replace the process-wide config."""
    global _config
    with _config_lock:
        _config = config
    configure_logging(config.log_level)


def reset_query_config() -> None:
    """Drop the cached config so the next access reloads it."""
    global _config
    with _config_lock:
        _config = None
