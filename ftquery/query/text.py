# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Full-text query over one or more weighted text fields.

Single field:    ``@title:(redis | search)``
Weighted field:  ``@title:(redis | search) => { $weight: 5.0 }``
Several fields:  ``(@title:(...) => { $weight: 3.0 } | @body:(...))``
"""

from __future__ import annotations

import math
import re
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from ftquery.errors import MissingValueError, OutOfRangeError
from ftquery.query.base import BaseQuery, QueryBuilder
from ftquery.query.filter import WILDCARD, FilterNode, render_filter
from ftquery.query.sort import SortSpec
from ftquery.query.stopwords import StopwordsInput, load_stopwords
from ftquery.utils.config import get_query_config
from ftquery.utils.escaping import escape_field_name, escape_text

FilterInput = Union[FilterNode, str, None]
FieldWeights = Union[str, Mapping[str, float]]

_EDGE_COMMAS = re.compile(r"^,+|,+$")
_SMART_QUOTES = ("“", "”")


def tokenize(text: str, stopwords: FrozenSet[str] = frozenset()) -> List[str]:
    """Split query text into escaped, lower-cased tokens with stopwords removed."""
    if text is None or not text.strip():
        raise MissingValueError("Query text is required")
    tokens = []
    for raw in text.split():
        token = _EDGE_COMMAS.sub("", raw.strip())
        for quote in _SMART_QUOTES:
            token = token.replace(quote, "")
        token = token.lower()
        if not token or token in stopwords:
            continue
        tokens.append(escape_text(token))
    return tokens


def tokenize_and_join(text: str, stopwords: FrozenSet[str] = frozenset()) -> str:
    tokens = tokenize(text, stopwords)
    if not tokens:
        raise MissingValueError(f"No searchable tokens left in query text: {text!r}")
    return " | ".join(tokens)


def validate_field_weights(field_weights: FieldWeights) -> Dict[str, float]:
    """Normalize a field name or a ``{field: weight}`` mapping to a weight dict."""
    if field_weights is None:
        raise MissingValueError("At least one text field is required")
    if isinstance(field_weights, str):
        field_weights = {field_weights: 1.0}
    if not field_weights:
        raise MissingValueError("At least one text field is required")
    weights: Dict[str, float] = {}
    for field, weight in field_weights.items():
        if field is None or not str(field).strip():
            raise MissingValueError("Text field name is required")
        if weight is None:
            raise MissingValueError(f"Weight for field '{field}' cannot be None")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise OutOfRangeError(f"Weight for field '{field}' must be a number, got {weight!r}")
        if not math.isfinite(weight) or weight <= 0:
            raise OutOfRangeError(
                f"Weight for field '{field}' must be a positive finite number, got {weight}"
            )
        weights[str(field).strip()] = float(weight)
    return weights


class TextQuery(BaseQuery):
    def __init__(
        self,
        text: str,
        text_field_name: FieldWeights,
        text_scorer: Optional[str] = None,
        filter_expression: FilterInput = None,
        num_results: Optional[int] = None,
        return_fields: Optional[Iterable[str]] = None,
        stopwords: StopwordsInput = None,
        return_score: bool = False,
        sort_by: SortSpec = None,
        in_order: bool = False,
        dialect: Optional[int] = None,
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
        if text is None or not str(text).strip():
            raise MissingValueError("Query text is required")
        self._text = text
        self._field_weights = validate_field_weights(text_field_name)
        self._text_scorer = text_scorer or get_query_config().text_scorer
        self._filter = filter_expression
        self._stopwords = load_stopwords(stopwords)
        self._return_score_flag = bool(return_score)
        # fail early on text that is nothing but stopwords
        tokenize_and_join(self._text, self._stopwords)

    @staticmethod
    def builder() -> "TextQueryBuilder":
        return TextQueryBuilder()

    @property
    def text(self) -> str:
        return self._text

    @property
    def text_scorer(self) -> str:
        return self._text_scorer

    @property
    def filter_expression(self) -> FilterInput:
        return self._filter

    @property
    def stopwords(self) -> FrozenSet[str]:
        return self._stopwords

    @property
    def field_weights(self) -> Dict[str, float]:
        return dict(self._field_weights)

    def set_field_weights(self, field_weights: FieldWeights) -> None:
        self._field_weights = validate_field_weights(field_weights)

    def query_string(self) -> str:
        tokens = tokenize_and_join(self._text, self._stopwords)
        clauses = []
        for field, weight in self._field_weights.items():
            clause = f"@{escape_field_name(field)}:({tokens})"
            if weight != 1.0:
                clause += f" => {{ $weight: {weight} }}"
            clauses.append(clause)
        if len(clauses) == 1:
            text_query = clauses[0]
        else:
            text_query = "(" + " | ".join(clauses) + ")"

        filter_str = render_filter(self._filter)
        if filter_str != WILDCARD:
            return f"{text_query} AND {filter_str}"
        return text_query

    def _scorer(self) -> Optional[str]:
        return self._text_scorer

    def _return_score(self) -> bool:
        return self._return_score_flag

    def __repr__(self) -> str:
        return f"TextQuery({self.query_string()!r})"


class TextQueryBuilder(QueryBuilder):
    _target = TextQuery
    _required = ("text", "text_field_name")

    def text(self, text: str) -> "TextQueryBuilder":
        return self._set("text", text)

    def text_field(self, field: str) -> "TextQueryBuilder":
        return self._set("text_field_name", field)

    def text_field_weights(self, field_weights: Mapping[str, float]) -> "TextQueryBuilder":
        validate_field_weights(field_weights)
        return self._set("text_field_name", dict(field_weights))

    def scorer(self, scorer: str) -> "TextQueryBuilder":
        return self._set("text_scorer", scorer)

    def filter_expression(self, filter_expression: FilterInput) -> "TextQueryBuilder":
        return self._set("filter_expression", filter_expression)

    def num_results(self, num_results: int) -> "TextQueryBuilder":
        return self._set("num_results", num_results)

    def return_fields(self, *fields: str) -> "TextQueryBuilder":
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        return self._set("return_fields", list(fields))

    def stopwords(self, stopwords: StopwordsInput) -> "TextQueryBuilder":
        return self._set("stopwords", stopwords)

    def return_score(self, return_score: bool) -> "TextQueryBuilder":
        return self._set("return_score", return_score)

    def sort_by(self, spec: SortSpec, direction: Optional[str] = None) -> "TextQueryBuilder":
        if direction is not None:
            spec = (spec, direction)
        return self._set("sort_by", spec)

    def in_order(self, in_order: bool) -> "TextQueryBuilder":
        return self._set("in_order", in_order)

    def dialect(self, dialect: int) -> "TextQueryBuilder":
        return self._set("dialect", dialect)
