# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Vector similarity queries.

``VectorQuery`` compiles to a KNN clause, ``VectorRangeQuery`` to a
``VECTOR_RANGE`` clause. Both encode the query vector as little-endian bytes in
the parameter map. Runtime search parameters (EF, epsilon, SVS window/history/
buffer) are sent only when set and are re-validated whenever they are changed
on a built query.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ftquery.errors import (
    InvalidEnumValueError,
    MissingValueError,
    OutOfRangeError,
    VectorDimensionError,
)
from ftquery.query.base import BaseQuery, QueryBuilder, validate_positive_int
from ftquery.query.filter import WILDCARD, FilterNode, render_filter
from ftquery.query.sort import SortSpec
from ftquery.utils.codec import array_to_buffer, check_vector_values, normalize_dtype
from ftquery.utils.config import get_query_config
from ftquery.utils.escaping import escape_field_name, format_float


FilterInput = Union[FilterNode, str, None]

SEARCH_HISTORY_MODES = ("OFF", "ON", "AUTO")

# parameter map keys
K_PARAM = "K"
VECTOR_PARAM = "vec"
EF_RUNTIME_PARAM = "ef_runtime"
EPSILON_PARAM = "EPSILON"
SEARCH_WINDOW_SIZE_PARAM = "search_window_size"
USE_SEARCH_HISTORY_PARAM = "use_search_history"
SEARCH_BUFFER_CAPACITY_PARAM = "search_buffer_capacity"


class DistanceMetric(str, Enum):
    COSINE = "cosine"
    L2 = "l2"
    IP = "ip"

    @classmethod
    def parse(cls, metric: Union["DistanceMetric", str]) -> "DistanceMetric":
        if isinstance(metric, DistanceMetric):
            return metric
        if isinstance(metric, str):
            try:
                return cls(metric.strip().lower())
            except ValueError:
                pass
        raise InvalidEnumValueError(
            f"Invalid distance metric: {metric!r}. Supported metrics are: {[m.value for m in cls]}"
        )


def _validate_field(field: str, what: str = "Field name") -> str:
    if field is None or not isinstance(field, str) or not field.strip():
        raise MissingValueError(f"{what} is required")
    return field.strip()


def _copy_vector(values: Sequence[float], dtype: str) -> Tuple[Union[int, float], ...]:
    if values is None:
        raise VectorDimensionError("Vector is required")
    copied = tuple(check_vector_values(values, dtype))
    if not copied:
        raise VectorDimensionError("Vector cannot be empty")
    return copied


def _optional_positive(name: str, value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    return validate_positive_int(name, value)


def _optional_search_history(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().upper() in SEARCH_HISTORY_MODES:
        return value.strip().upper()
    raise InvalidEnumValueError(
        f"use_search_history must be one of: {', '.join(SEARCH_HISTORY_MODES)}, got {value!r}"
    )


def _optional_epsilon(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OutOfRangeError(f"epsilon must be a number, got {value!r}")
    if not math.isfinite(value):
        raise OutOfRangeError(f"epsilon must be finite, got {value}")
    if value < 0:
        raise OutOfRangeError("epsilon must be non-negative")
    return float(value)


# =========================================================================
# Vector
# =========================================================================


class Vector:
    """A query vector bound to a field, with its encoding dtype and score weight."""

    def __init__(
        self,
        vector: Sequence[float],
        field_name: str,
        dtype: str = "float32",
        weight: float = 1.0,
    ):
        self._dtype = normalize_dtype(dtype)
        self._vector = _copy_vector(vector, self._dtype)
        self._field_name = _validate_field(field_name)
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise OutOfRangeError(f"Weight must be a number, got {weight!r}")
        if not math.isfinite(weight) or weight <= 0:
            raise OutOfRangeError(f"Weight must be a positive finite number, got {weight}")
        self._weight = float(weight)

    @staticmethod
    def builder() -> "VectorBuilder":
        return VectorBuilder()

    @property
    def vector(self) -> List[float]:
        return list(self._vector)

    @property
    def field_name(self) -> str:
        return self._field_name

    @property
    def dtype(self) -> str:
        return self._dtype

    @property
    def weight(self) -> float:
        return self._weight

    def __len__(self) -> int:
        return len(self._vector)

    def to_bytes(self) -> bytes:
        return array_to_buffer(self._vector, self._dtype)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return (
            self._vector == other._vector
            and self._field_name == other._field_name
            and self._dtype == other._dtype
            and self._weight == other._weight
        )

    def __hash__(self) -> int:
        return hash((self._vector, self._field_name, self._dtype, self._weight))

    def __repr__(self) -> str:
        return (
            f"Vector(field_name={self._field_name}, dtype={self._dtype}, "
            f"weight={self._weight:.2f}, dimensions={len(self._vector)})"
        )


class VectorBuilder(QueryBuilder):
    _target = Vector
    _required = ("vector", "field_name")

    def vector(self, values: Sequence[float]) -> "VectorBuilder":
        return self._set("vector", None if values is None else list(values))

    def field_name(self, field_name: str) -> "VectorBuilder":
        return self._set("field_name", field_name)

    def dtype(self, dtype: str) -> "VectorBuilder":
        return self._set("dtype", dtype)

    def weight(self, weight: float) -> "VectorBuilder":
        return self._set("weight", weight)


# =========================================================================
# Shared vector query state
# =========================================================================


class _BaseVectorQuery(BaseQuery):
    def __init__(
        self,
        vector: Sequence[float],
        field: str,
        dtype: str = "float32",
        filter_expression: FilterInput = None,
        normalize_vector_distance: bool = False,
        search_window_size: Optional[int] = None,
        use_search_history: Optional[str] = None,
        search_buffer_capacity: Optional[int] = None,
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        return_score: bool = False,
        sort_by: SortSpec = None,
        in_order: bool = False,
        dialect: Optional[int] = None,
        skip_decode_fields: Optional[Iterable[str]] = None,
    ):
        self._field = _validate_field(field)
        self._dtype = normalize_dtype(dtype)
        self._vector = _copy_vector(vector, self._dtype)
        super().__init__(
            num_results=num_results,
            return_fields=return_fields,
            dialect=dialect,
            sort_by=sort_by,
            in_order=in_order,
            skip_decode_fields=skip_decode_fields,
        )
        self._filter = filter_expression
        self._normalize_vector_distance = bool(normalize_vector_distance)
        self._return_score_flag = bool(return_score)
        self._distance_alias = get_query_config().distance_alias
        self._search_window_size = _optional_positive("search_window_size", search_window_size)
        self._use_search_history = _optional_search_history(use_search_history)
        self._search_buffer_capacity = _optional_positive(
            "search_buffer_capacity", search_buffer_capacity
        )

    @property
    def field(self) -> str:
        return self._field

    @property
    def vector(self) -> List[float]:
        return list(self._vector)

    @property
    def dtype(self) -> str:
        return self._dtype

    @property
    def filter_expression(self) -> FilterInput:
        return self._filter

    @property
    def normalize_vector_distance(self) -> bool:
        return self._normalize_vector_distance

    @property
    def return_score(self) -> bool:
        return self._return_score_flag

    @property
    def distance_alias(self) -> str:
        return self._distance_alias

    @property
    def search_window_size(self) -> Optional[int]:
        return self._search_window_size

    @search_window_size.setter
    def search_window_size(self, value: Optional[int]) -> None:
        self._search_window_size = _optional_positive("search_window_size", value)

    @property
    def use_search_history(self) -> Optional[str]:
        return self._use_search_history

    @use_search_history.setter
    def use_search_history(self, value: Optional[str]) -> None:
        self._use_search_history = _optional_search_history(value)

    @property
    def search_buffer_capacity(self) -> Optional[int]:
        return self._search_buffer_capacity

    @search_buffer_capacity.setter
    def search_buffer_capacity(self, value: Optional[int]) -> None:
        self._search_buffer_capacity = _optional_positive("search_buffer_capacity", value)

    def _return_score(self) -> bool:
        return self._return_score_flag

    def _vector_bytes(self) -> bytes:
        return array_to_buffer(self._vector, self._dtype)

    def _runtime_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self._search_window_size is not None:
            params[SEARCH_WINDOW_SIZE_PARAM] = self._search_window_size
        if self._use_search_history is not None:
            params[USE_SEARCH_HISTORY_PARAM] = self._use_search_history
        if self._search_buffer_capacity is not None:
            params[SEARCH_BUFFER_CAPACITY_PARAM] = self._search_buffer_capacity
        return params


# =========================================================================
# KNN query
# =========================================================================


class VectorQuery(_BaseVectorQuery):
    """K-nearest-neighbour query: ``<prefilter>=>[KNN $K @field $vec AS vector_distance]``."""

    def __init__(
        self,
        vector: Sequence[float],
        field: str,
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        filter_expression: FilterInput = None,
        dtype: str = "float32",
        distance_metric: Union[DistanceMetric, str] = DistanceMetric.COSINE,
        return_distance: bool = True,
        return_score: bool = False,
        normalize_vector_distance: bool = False,
        hybrid_field: Optional[str] = None,
        hybrid_query: Optional[str] = None,
        ef_runtime: Optional[int] = None,
        search_window_size: Optional[int] = None,
        use_search_history: Optional[str] = None,
        search_buffer_capacity: Optional[int] = None,
        sort_by: SortSpec = None,
        in_order: bool = False,
        dialect: Optional[int] = None,
        skip_decode_fields: Optional[Iterable[str]] = None,
    ):
        super().__init__(
            vector=vector,
            field=field,
            dtype=dtype,
            filter_expression=filter_expression,
            normalize_vector_distance=normalize_vector_distance,
            search_window_size=search_window_size,
            use_search_history=use_search_history,
            search_buffer_capacity=search_buffer_capacity,
            num_results=num_results,
            return_fields=return_fields,
            return_score=return_score,
            sort_by=sort_by,
            in_order=in_order,
            dialect=dialect,
            skip_decode_fields=skip_decode_fields,
        )
        self._distance_metric = DistanceMetric.parse(distance_metric)
        self._return_distance = bool(return_distance)
        if (hybrid_field is None) != (hybrid_query is None):
            raise MissingValueError("hybrid_field and hybrid_query must be set together")
        self._hybrid_field = (
            _validate_field(hybrid_field, "Hybrid field") if hybrid_field is not None else None
        )
        if hybrid_query is not None and not str(hybrid_query).strip():
            raise MissingValueError("Hybrid query is required")
        self._hybrid_query = hybrid_query.strip() if hybrid_query else None
        self._ef_runtime = _optional_positive("ef_runtime", ef_runtime)

    @staticmethod
    def builder() -> "VectorQueryBuilder":
        return VectorQueryBuilder()

    @property
    def distance_metric(self) -> DistanceMetric:
        return self._distance_metric

    @property
    def return_distance(self) -> bool:
        return self._return_distance

    @property
    def hybrid_field(self) -> Optional[str]:
        return self._hybrid_field

    @property
    def hybrid_query(self) -> Optional[str]:
        return self._hybrid_query

    @property
    def ef_runtime(self) -> Optional[int]:
        return self._ef_runtime

    @ef_runtime.setter
    def ef_runtime(self, value: Optional[int]) -> None:
        self._ef_runtime = _optional_positive("ef_runtime", value)

    def query_string(self) -> str:
        prefilter = render_filter(self._filter)
        base = WILDCARD if prefilter == WILDCARD else f"({prefilter})"
        if self._hybrid_field:
            clause = f"@{escape_field_name(self._hybrid_field)}:({self._hybrid_query})"
            base = clause if base == WILDCARD else f"{base} {clause}"
        knn = f"=>[KNN ${K_PARAM} @{escape_field_name(self._field)} ${VECTOR_PARAM}"
        if self._return_distance:
            knn += f" AS {self._distance_alias}"
        return f"{base}{knn}]"

    def params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            K_PARAM: self._num_results,
            VECTOR_PARAM: self._vector_bytes(),
        }
        if self._ef_runtime is not None:
            params[EF_RUNTIME_PARAM] = self._ef_runtime
        params.update(self._runtime_params())
        return params

    def __repr__(self) -> str:
        return (
            f"VectorQuery(field={self._field!r}, num_results={self._num_results}, "
            f"query={self.query_string()!r})"
        )


# =========================================================================
# Range query
# =========================================================================


class VectorRangeQuery(_BaseVectorQuery):
    """Distance-bounded query: ``@field:[VECTOR_RANGE <threshold> $vec]=>{...}``.

    ``distance_threshold`` and ``epsilon`` stay adjustable after construction.
    With ``normalize_vector_distance`` the threshold is bounded by 1.0.
    """

    DEFAULT_DISTANCE_THRESHOLD = 0.2

    def __init__(
        self,
        vector: Sequence[float],
        field: str,
        distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        filter_expression: FilterInput = None,
        dtype: str = "float32",
        return_score: bool = False,
        normalize_vector_distance: bool = False,
        epsilon: Optional[float] = None,
        search_window_size: Optional[int] = None,
        use_search_history: Optional[str] = None,
        search_buffer_capacity: Optional[int] = None,
        sort_by: SortSpec = None,
        in_order: bool = False,
        dialect: Optional[int] = None,
        skip_decode_fields: Optional[Iterable[str]] = None,
    ):
        super().__init__(
            vector=vector,
            field=field,
            dtype=dtype,
            filter_expression=filter_expression,
            normalize_vector_distance=normalize_vector_distance,
            search_window_size=search_window_size,
            use_search_history=use_search_history,
            search_buffer_capacity=search_buffer_capacity,
            num_results=num_results,
            return_fields=return_fields,
            return_score=return_score,
            sort_by=sort_by,
            in_order=in_order,
            dialect=dialect,
            skip_decode_fields=skip_decode_fields,
        )
        self._distance_threshold = self._check_threshold(distance_threshold)
        self._epsilon = _optional_epsilon(epsilon)

    @staticmethod
    def builder() -> "VectorRangeQueryBuilder":
        return VectorRangeQueryBuilder()

    def _check_threshold(self, value: float) -> float:
        if value is None:
            raise MissingValueError("Distance threshold is required")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise OutOfRangeError(f"Distance threshold must be a number, got {value!r}")
        if not math.isfinite(value):
            raise OutOfRangeError(f"Distance threshold must be finite, got {value}")
        if value < 0:
            raise OutOfRangeError(f"Distance threshold must be non-negative, got {value}")
        if self._normalize_vector_distance and value > 1.0:
            raise OutOfRangeError(
                "Distance threshold must be <= 1.0 when normalizing vector distance"
            )
        return float(value)

    @property
    def distance_threshold(self) -> float:
        return self._distance_threshold

    @distance_threshold.setter
    def distance_threshold(self, value: float) -> None:
        self._distance_threshold = self._check_threshold(value)

    @property
    def epsilon(self) -> Optional[float]:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: Optional[float]) -> None:
        self._epsilon = _optional_epsilon(value)

    def query_string(self) -> str:
        range_clause = (
            f"@{escape_field_name(self._field)}:"
            f"[VECTOR_RANGE {format_float(self._distance_threshold)} ${VECTOR_PARAM}]"
            f"=>{{$YIELD_DISTANCE_AS: {self._distance_alias}}}"
        )
        filter_str = render_filter(self._filter)
        if filter_str == WILDCARD:
            return range_clause
        return f"({range_clause} {filter_str})"

    def params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {VECTOR_PARAM: self._vector_bytes()}
        if self._epsilon is not None:
            params[EPSILON_PARAM] = self._epsilon
        params.update(self._runtime_params())
        return params

    def __repr__(self) -> str:
        return self.query_string()


# =========================================================================
# Builders
# =========================================================================


class _VectorQueryBuilderMixin(QueryBuilder):
    def vector(self, values: Sequence[float]):
        return self._set("vector", None if values is None else list(values))

    def field(self, field: str):
        return self._set("field", field)

    def num_results(self, num_results: int):
        return self._set("num_results", num_results)

    def return_fields(self, *fields: str):
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        return self._set("return_fields", list(fields))

    def filter_expression(self, filter_expression: FilterInput):
        return self._set("filter_expression", filter_expression)

    def dtype(self, dtype: str):
        return self._set("dtype", dtype)

    def return_score(self, return_score: bool):
        return self._set("return_score", return_score)

    def normalize_vector_distance(self, normalize: bool):
        return self._set("normalize_vector_distance", normalize)

    def search_window_size(self, size: Optional[int]):
        _optional_positive("search_window_size", size)
        return self._set("search_window_size", size)

    def use_search_history(self, mode: Optional[str]):
        _optional_search_history(mode)
        return self._set("use_search_history", mode)

    def search_buffer_capacity(self, capacity: Optional[int]):
        _optional_positive("search_buffer_capacity", capacity)
        return self._set("search_buffer_capacity", capacity)

    def sort_by(self, spec: SortSpec, direction: Optional[str] = None):
        if direction is not None:
            spec = (spec, direction)
        return self._set("sort_by", spec)

    def in_order(self, in_order: bool):
        return self._set("in_order", in_order)

    def dialect(self, dialect: int):
        return self._set("dialect", dialect)

    def skip_decode_fields(self, *fields: str):
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        return self._set("skip_decode_fields", list(fields))


class VectorQueryBuilder(_VectorQueryBuilderMixin):
    _target = VectorQuery
    _required = ("vector", "field")

    def distance_metric(self, metric: Union[DistanceMetric, str]) -> "VectorQueryBuilder":
        return self._set("distance_metric", metric)

    def return_distance(self, return_distance: bool) -> "VectorQueryBuilder":
        return self._set("return_distance", return_distance)

    def hybrid_search(self, field: str, query: str) -> "VectorQueryBuilder":
        self._set("hybrid_field", field)
        return self._set("hybrid_query", query)

    def ef_runtime(self, ef_runtime: Optional[int]) -> "VectorQueryBuilder":
        return self._set("ef_runtime", ef_runtime)


class VectorRangeQueryBuilder(_VectorQueryBuilderMixin):
    _target = VectorRangeQuery
    _required = ("vector", "field")

    def distance_threshold(self, threshold: float) -> "VectorRangeQueryBuilder":
        return self._set("distance_threshold", threshold)

    def epsilon(self, epsilon: Optional[float]) -> "VectorRangeQueryBuilder":
        _optional_epsilon(epsilon)
        return self._set("epsilon", epsilon)
