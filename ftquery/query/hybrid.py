# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Hybrid text + vector queries and multi-vector queries.

Both run as ``FT.AGGREGATE`` pipelines: the query string selects candidates and
``APPLY`` steps blend per-criterion scores into a single ranking score.

Score blending:
    vector_similarity = (2 - distance) / 2
    hybrid_score      = (1 - alpha) * text_score + alpha * vector_similarity
    combined_score    = w_0 * score_0 + w_1 * score_1 + ...
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ftquery.errors import MissingValueError, OutOfRangeError, VectorDimensionError
from ftquery.query.base import BaseQuery, QueryBuilder
from ftquery.query.filter import WILDCARD, FilterNode, render_filter
from ftquery.query.stopwords import StopwordsInput, load_stopwords
from ftquery.query.text import tokenize_and_join
from ftquery.query.vector import Vector
from ftquery.utils.codec import array_to_buffer, check_vector_values, normalize_dtype
from ftquery.utils.config import get_query_config
from ftquery.utils.escaping import escape_field_name


FilterInput = Union[FilterNode, str, None]

_UNSET = object()

HYBRID_VECTOR_PARAM = "vector"
DISTANCE_ID = "vector_distance"
MULTI_VECTOR_THRESHOLD = "2.0"


# =========================================================================
# Scoring helpers
# =========================================================================


def _check_alpha(alpha: float) -> float:
    if isinstance(alpha, bool) or not isinstance(alpha, (int, float)):
        raise OutOfRangeError(f"alpha must be a number, got {alpha!r}")
    if not 0.0 <= alpha <= 1.0:
        raise OutOfRangeError(f"alpha must be between 0 and 1, got {alpha}")
    return float(alpha)


def vector_similarity(distance: float) -> float:
    """Convert a cosine distance in [0, 2] into a similarity in [0, 1]."""
    return (2.0 - distance) / 2.0


def hybrid_score(text_score: float, similarity: float, alpha: float) -> float:
    alpha = _check_alpha(alpha)
    return (1.0 - alpha) * text_score + alpha * similarity


def weighted_score(distances: Sequence[float], weights: Sequence[float]) -> float:
    """Client-side evaluation of the multi-vector combined score."""
    if len(distances) != len(weights):
        raise VectorDimensionError(
            f"Got {len(distances)} distances but {len(weights)} weights"
        )
    return sum(w * vector_similarity(d) for d, w in zip(distances, weights))


def _params_args(params: Dict[str, Any]) -> List[Any]:
    args: List[Any] = ["PARAMS", 2 * len(params)]
    for key, value in params.items():
        args.extend([key, value])
    return args


# =========================================================================
# HybridQuery
# =========================================================================


class HybridQuery(BaseQuery):
    """Fuzzy text match on one field, re-ranked by KNN vector similarity."""

    def __init__(
        self,
        text: str,
        text_field_name: str,
        vector: Sequence[float],
        vector_field_name: str,
        text_scorer: Optional[str] = None,
        filter_expression: FilterInput = None,
        alpha: Optional[float] = None,
        dtype: str = "float32",
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        stopwords: StopwordsInput = _UNSET,
        dialect: Optional[int] = None,
    ):
        super().__init__(num_results=num_results, return_fields=return_fields, dialect=dialect)
        config = get_query_config()
        if text is None or not str(text).strip():
            raise MissingValueError("Query text is required")
        for name, value in (("text_field_name", text_field_name), ("vector_field_name", vector_field_name)):
            if value is None or not isinstance(value, str) or not value.strip():
                raise MissingValueError(f"{name} is required")
        self._text = text
        self._text_field = text_field_name.strip()
        self._vector_field = vector_field_name.strip()
        self._dtype = normalize_dtype(dtype)
        if vector is None:
            raise VectorDimensionError("Vector is required")
        self._vector = tuple(check_vector_values(vector, self._dtype))
        if not self._vector:
            raise VectorDimensionError("Vector cannot be empty")
        self._text_scorer = text_scorer or config.text_scorer
        self._filter = filter_expression
        self._alpha = _check_alpha(config.hybrid_alpha if alpha is None else alpha)
        if stopwords is _UNSET:
            stopwords = config.stopwords_language
        self._stopwords = load_stopwords(stopwords)
        # raises when every token is a stopword
        self._tokens = tokenize_and_join(self._text, self._stopwords)

    @staticmethod
    def builder() -> "HybridQueryBuilder":
        return HybridQueryBuilder()

    @property
    def text(self) -> str:
        return self._text

    @property
    def text_field_name(self) -> str:
        return self._text_field

    @property
    def vector_field_name(self) -> str:
        return self._vector_field

    @property
    def vector(self) -> List[float]:
        return list(self._vector)

    @property
    def dtype(self) -> str:
        return self._dtype

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def text_scorer(self) -> str:
        return self._text_scorer

    @property
    def filter_expression(self) -> FilterInput:
        return self._filter

    @property
    def stopwords(self):
        return self._stopwords

    def tokenized_text(self) -> str:
        return self._tokens

    def query_string(self) -> str:
        text_query = f"(~@{escape_field_name(self._text_field)}:({self._tokens})"
        filter_str = render_filter(self._filter)
        if filter_str != WILDCARD:
            text_query += f" AND {filter_str}"
        knn = (
            f"KNN {self._num_results} @{escape_field_name(self._vector_field)} "
            f"${HYBRID_VECTOR_PARAM} AS {DISTANCE_ID}"
        )
        return f"{text_query})=>[{knn}]"

    def params(self) -> Dict[str, Any]:
        return {HYBRID_VECTOR_PARAM: array_to_buffer(self._vector, self._dtype)}

    def scoring_formula(self) -> str:
        return "%f*@text_score + %f*@vector_similarity" % (1 - self._alpha, self._alpha)

    def score_calculations(self) -> Dict[str, str]:
        return {
            "vector_similarity": f"(2 - @{DISTANCE_ID})/2",
            "text_score": "@__score",
            "hybrid_score": self.scoring_formula(),
        }

    def _scorer(self) -> Optional[str]:
        return self._text_scorer

    def aggregate_args(self) -> List[Any]:
        """Arguments for ``FT.AGGREGATE <index> ...``."""
        args: List[Any] = [self.query_string(), "SCORER", self._text_scorer, "ADDSCORES"]
        for name, expression in self.score_calculations().items():
            args.extend(["APPLY", expression, "AS", name])
        args.extend(["SORTBY", 2, "@hybrid_score", "DESC", "MAX", self._num_results])
        if self._return_fields:
            args.extend(["LOAD", len(self._return_fields), *self._return_fields])
        args.extend(_params_args(self.params()))
        args.extend(["DIALECT", self._dialect])
        return args

    def __repr__(self) -> str:
        return f"HybridQuery({self.query_string()!r}, alpha={self._alpha})"


class HybridQueryBuilder(QueryBuilder):
    _target = HybridQuery
    _required = ("text", "text_field_name", "vector", "vector_field_name")

    def text(self, text: str) -> "HybridQueryBuilder":
        return self._set("text", text)

    def text_field_name(self, field: str) -> "HybridQueryBuilder":
        return self._set("text_field_name", field)

    def vector(self, values: Sequence[float]) -> "HybridQueryBuilder":
        return self._set("vector", None if values is None else list(values))

    def vector_field_name(self, field: str) -> "HybridQueryBuilder":
        return self._set("vector_field_name", field)

    def text_scorer(self, scorer: str) -> "HybridQueryBuilder":
        return self._set("text_scorer", scorer)

    def filter_expression(self, filter_expression: FilterInput) -> "HybridQueryBuilder":
        return self._set("filter_expression", filter_expression)

    def alpha(self, alpha: float) -> "HybridQueryBuilder":
        return self._set("alpha", alpha)

    def dtype(self, dtype: str) -> "HybridQueryBuilder":
        return self._set("dtype", dtype)

    def num_results(self, num_results: int) -> "HybridQueryBuilder":
        return self._set("num_results", num_results)

    def return_fields(self, *fields: str) -> "HybridQueryBuilder":
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        return self._set("return_fields", list(fields))

    def stopwords(self, stopwords: StopwordsInput) -> "HybridQueryBuilder":
        return self._set("stopwords", stopwords)

    def dialect(self, dialect: int) -> "HybridQueryBuilder":
        return self._set("dialect", dialect)


# =========================================================================
# MultiVectorQuery
# =========================================================================


class MultiVectorQuery(BaseQuery):
    """Range-match several vector fields and rank by a weighted similarity sum."""

    def __init__(
        self,
        vectors: Union[Vector, Sequence[Vector]],
        filter_expression: FilterInput = None,
        return_fields: Optional[Iterable[str]] = None,
        num_results: Optional[int] = None,
        dialect: Optional[int] = None,
    ):
        super().__init__(num_results=num_results, return_fields=return_fields, dialect=dialect)
        if vectors is None:
            raise MissingValueError("At least one vector is required")
        if isinstance(vectors, Vector):
            vectors = [vectors]
        vectors = list(vectors)
        if not vectors:
            raise MissingValueError("At least one vector is required")
        for i, v in enumerate(vectors):
            if v is None:
                raise VectorDimensionError(f"Vector at position {i} is None")
            if not isinstance(v, Vector):
                raise VectorDimensionError(f"Expected Vector at position {i}, got {type(v).__name__}")
        self._vectors = tuple(vectors)
        self._filter = filter_expression

    @staticmethod
    def builder() -> "MultiVectorQueryBuilder":
        return MultiVectorQueryBuilder()

    @property
    def vectors(self) -> List[Vector]:
        return list(self._vectors)

    @property
    def filter_expression(self) -> FilterInput:
        return self._filter

    def query_string(self) -> str:
        ranges = " | ".join(
            f"@{escape_field_name(v.field_name)}:"
            f"[VECTOR_RANGE {MULTI_VECTOR_THRESHOLD} $vector_{i}]"
            f"=>{{$YIELD_DISTANCE_AS: distance_{i}}}"
            for i, v in enumerate(self._vectors)
        )
        filter_str = render_filter(self._filter)
        if filter_str != WILDCARD:
            return f"({ranges}) AND ({filter_str})"
        return ranges

    def params(self) -> Dict[str, Any]:
        return {f"vector_{i}": v.to_bytes() for i, v in enumerate(self._vectors)}

    def score_calculations(self) -> Dict[str, str]:
        return {f"score_{i}": f"(2 - distance_{i})/2" for i in range(len(self._vectors))}

    def scoring_formula(self) -> str:
        return " + ".join(
            "%.2f * score_%d" % (v.weight, i) for i, v in enumerate(self._vectors)
        )

    def aggregate_args(self) -> List[Any]:
        """Arguments for ``FT.AGGREGATE <index> ...``; field references carry ``@``."""
        args: List[Any] = [self.query_string()]
        for i in range(len(self._vectors)):
            args.extend(["APPLY", f"(2 - @distance_{i})/2", "AS", f"score_{i}"])
        combined = " + ".join(
            "%.2f * @score_%d" % (v.weight, i) for i, v in enumerate(self._vectors)
        )
        args.extend(["APPLY", combined, "AS", "combined_score"])
        args.extend(["SORTBY", 2, "@combined_score", "DESC", "MAX", self._num_results])
        if self._return_fields:
            args.extend(["LOAD", len(self._return_fields), *self._return_fields])
        args.extend(_params_args(self.params()))
        args.extend(["DIALECT", self._dialect])
        return args

    def __repr__(self) -> str:
        return f"MultiVectorQuery({self.query_string()!r})"


class MultiVectorQueryBuilder(QueryBuilder):
    _target = MultiVectorQuery
    _required = ("vectors",)

    def vector(self, vector: Vector) -> "MultiVectorQueryBuilder":
        vectors = list(self._kwargs.get("vectors", []))
        vectors.append(vector)
        return self._set("vectors", vectors)

    def vectors(self, *vectors: Vector) -> "MultiVectorQueryBuilder":
        if len(vectors) == 1 and isinstance(vectors[0], (list, tuple)):
            vectors = tuple(vectors[0])
        return self._set("vectors", list(vectors))

    def filter_expression(self, filter_expression: FilterInput) -> "MultiVectorQueryBuilder":
        return self._set("filter_expression", filter_expression)

    def return_fields(self, *fields: str) -> "MultiVectorQueryBuilder":
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        return self._set("return_fields", list(fields))

    def num_results(self, num_results: int) -> "MultiVectorQueryBuilder":
        return self._set("num_results", num_results)

    def dialect(self, dialect: int) -> "MultiVectorQueryBuilder":
        return self._set("dialect", dialect)
