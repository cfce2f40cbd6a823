# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Filter expressions and search query builders."""

from .base import BaseQuery, CompiledQuery
from .filter import (
    AndNode,
    CustomNode,
    Filter,
    FilterNode,
    GeoNode,
    GeoUnit,
    NotNode,
    NumericNode,
    OrNode,
    TagNode,
    TextNode,
    build_filter,
)
from .filter_query import CountQuery, FilterQuery
from .hybrid import (
    HybridQuery,
    MultiVectorQuery,
    hybrid_score,
    vector_similarity,
    weighted_score,
)
from .sort import SortField, normalize_sort_spec, parse_sort_spec
from .text import TextQuery
from .vector import DistanceMetric, Vector, VectorQuery, VectorRangeQuery

__all__ = [
    "AndNode",
    "BaseQuery",
    "CompiledQuery",
    "CountQuery",
    "CustomNode",
    "DistanceMetric",
    "Filter",
    "FilterNode",
    "FilterQuery",
    "GeoNode",
    "GeoUnit",
    "HybridQuery",
    "MultiVectorQuery",
    "NotNode",
    "NumericNode",
    "OrNode",
    "SortField",
    "TagNode",
    "TextNode",
    "TextQuery",
    "Vector",
    "VectorQuery",
    "VectorRangeQuery",
    "build_filter",
    "hybrid_score",
    "normalize_sort_spec",
    "parse_sort_spec",
    "vector_similarity",
    "weighted_score",
]
