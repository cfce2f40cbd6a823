# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Compile filters, vector, text and hybrid searches into RediSearch queries."""

from .errors import (
    EmptyFilterError,
    FTQueryException,
    InvalidEnumValueError,
    MissingValueError,
    OutOfRangeError,
    QueryValidationError,
    VectorDimensionError,
)
from .query import (
    CountQuery,
    Filter,
    FilterQuery,
    HybridQuery,
    MultiVectorQuery,
    SortField,
    TextQuery,
    Vector,
    VectorQuery,
    VectorRangeQuery,
)
from .utils.codec import array_to_buffer, buffer_to_array
from .utils.config import QueryConfig, get_query_config

__version__ = "0.1.0"

__all__ = [
    "CountQuery",
    "EmptyFilterError",
    "FTQueryException",
    "Filter",
    "FilterQuery",
    "HybridQuery",
    "InvalidEnumValueError",
    "MissingValueError",
    "MultiVectorQuery",
    "OutOfRangeError",
    "QueryConfig",
    "QueryValidationError",
    "SortField",
    "TextQuery",
    "Vector",
    "VectorDimensionError",
    "VectorQuery",
    "VectorRangeQuery",
    "array_to_buffer",
    "buffer_to_array",
    "get_query_config",
]
