# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Compiled query artifact and options shared by every search query."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ftquery.errors import MissingValueError, OutOfRangeError
from ftquery.query.sort import SortField, SortSpec, normalize_sort_spec
from ftquery.utils.config import get_query_config


@dataclass(frozen=True)
class CompiledQuery:
    """Query string, parameters and search options handed to an execution client."""

    query_string: str
    params: Dict[str, Any] = field(default_factory=dict)
    dialect: int = 2
    offset: int = 0
    num_results: int = 10
    return_fields: Tuple[str, ...] = ()
    sort_by: Optional[SortField] = None
    in_order: bool = False
    scorer: Optional[str] = None
    no_content: bool = False
    return_score: bool = False

    def paging(self, offset: int, num_results: int) -> "CompiledQuery":
        if offset < 0:
            raise OutOfRangeError(f"offset must be non-negative, got {offset}")
        if num_results < 0:
            raise OutOfRangeError(f"num_results must be non-negative, got {num_results}")
        return dataclasses.replace(self, offset=offset, num_results=num_results)

    def to_args(self) -> List[Any]:
        """Arguments for ``FT.SEARCH <index> ...`` in engine order."""
        args: List[Any] = [self.query_string]
        if self.no_content:
            args.append("NOCONTENT")
        if self.return_score:
            args.append("WITHSCORES")
        if self.return_fields:
            args.extend(["RETURN", len(self.return_fields), *self.return_fields])
        if self.in_order:
            args.append("INORDER")
        if self.scorer:
            args.extend(["SCORER", self.scorer])
        if self.sort_by is not None:
            args.extend(["SORTBY", self.sort_by.field_name, self.sort_by.direction])
        args.extend(["LIMIT", self.offset, self.num_results])
        if self.params:
            args.extend(["PARAMS", 2 * len(self.params)])
            for key, value in self.params.items():
                args.extend([key, value])
        args.extend(["DIALECT", self.dialect])
        return args


def validate_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise OutOfRangeError(f"{name} must be a positive integer, got {value!r}")
    if value <= 0:
        raise OutOfRangeError(f"{name} must be positive, got {value}")
    return value


def copy_field_list(name: str, fields: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if fields is None:
        return ()
    if isinstance(fields, str):
        fields = [fields]
    copied = tuple(fields)
    if any(f is None for f in copied):
        raise MissingValueError(f"{name} cannot contain None values")
    return copied


class BaseQuery(ABC):
    """Options common to every ``FT.SEARCH`` style query.

    ``sort_by`` stays assignable after construction and is re-normalized on
    every assignment; everything else is fixed once the query is built.
    """

    def __init__(
        self,
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        dialect: Optional[int] = None,
        sort_by: SortSpec = None,
        in_order: bool = False,
        skip_decode_fields: Optional[Iterable[str]] = None,
    ):
        config = get_query_config()
        self._num_results = validate_positive_int(
            "num_results", config.num_results if num_results is None else num_results
        )
        self._dialect = validate_positive_int(
            "dialect", config.dialect if dialect is None else dialect
        )
        self._return_fields = copy_field_list("return_fields", return_fields)
        self._skip_decode_fields = copy_field_list("skip_decode_fields", skip_decode_fields)
        self._in_order = bool(in_order)
        self._sort_by = normalize_sort_spec(sort_by)

    @property
    def num_results(self) -> int:
        return self._num_results

    @property
    def dialect(self) -> int:
        return self._dialect

    @property
    def return_fields(self) -> List[str]:
        return list(self._return_fields)

    @property
    def skip_decode_fields(self) -> List[str]:
        return list(self._skip_decode_fields)

    @property
    def in_order(self) -> bool:
        return self._in_order

    @property
    def sort_by(self) -> Optional[SortField]:
        return self._sort_by

    @sort_by.setter
    def sort_by(self, spec: SortSpec) -> None:
        self._sort_by = normalize_sort_spec(spec)

    def set_sort(self, spec: SortSpec, direction: Optional[str] = None) -> None:
        self._sort_by = normalize_sort_spec(spec, direction)

    @abstractmethod
    def query_string(self) -> str:
        """Compile the query text."""

    def params(self) -> Dict[str, Any]:
        return {}

    def _scorer(self) -> Optional[str]:
        return None

    def _return_score(self) -> bool:
        return False

    def _no_content(self) -> bool:
        return False

    def _limit(self) -> int:
        return self._num_results

    def compile(self) -> CompiledQuery:
        return CompiledQuery(
            query_string=self.query_string(),
            params=self.params(),
            dialect=self._dialect,
            num_results=self._limit(),
            return_fields=self._return_fields,
            sort_by=self._sort_by,
            in_order=self._in_order,
            scorer=self._scorer(),
            no_content=self._no_content(),
            return_score=self._return_score(),
        )

    def __str__(self) -> str:
        return self.query_string()


class QueryBuilder:
    """Chained setters over a transient keyword set; validation happens in ``build``.

    A builder is not meant to be shared between threads.
    """

    _target: type
    _required: Tuple[str, ...] = ()

    def __init__(self, **defaults: Any):
        self._kwargs: Dict[str, Any] = dict(defaults)

    def _set(self, name: str, value: Any) -> "QueryBuilder":
        self._kwargs[name] = value
        return self

    def build(self):
        for name in self._required:
            if self._kwargs.get(name) is None:
                raise MissingValueError(f"{name} is required")
        return self._target(**self._kwargs)
