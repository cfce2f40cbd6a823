# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Queries made of a filter expression alone."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Union

from ftquery.query.base import BaseQuery
from ftquery.query.filter import FilterNode, render_filter
from ftquery.query.sort import SortSpec

FilterInput = Union[FilterNode, str, None]


class FilterQuery(BaseQuery):
    """Match documents by filter; ``None`` matches everything."""

    def __init__(
        self,
        filter_expression: FilterInput = None,
        return_fields: Optional[Iterable[str]] = None,
        num_results: Optional[int] = None,
        sort_by: SortSpec = None,
        in_order: bool = False,
        dialect: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
        skip_decode_fields: Optional[Iterable[str]] = None,
    ):
        super().__init__(
            num_results=num_results,
            return_fields=return_fields,
            dialect=dialect,
            sort_by=sort_by,
            in_order=in_order,
            skip_decode_fields=skip_decode_fields,
        )
        self._filter = filter_expression
        self._params = dict(params or {})

    @property
    def filter_expression(self) -> FilterInput:
        return self._filter

    def query_string(self) -> str:
        return render_filter(self._filter)

    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    def __repr__(self) -> str:
        return f"FilterQuery({self.query_string()!r})"


class CountQuery(FilterQuery):
    """Count matches without fetching documents."""

    def __init__(
        self,
        filter_expression: FilterInput = None,
        dialect: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(filter_expression=filter_expression, dialect=dialect, params=params)

    def _limit(self) -> int:
        return 0

    def _no_content(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"CountQuery({self.query_string()!r})"
