# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Filter expression AST and compiler for RediSearch boolean queries.

Leaf nodes carry an expression rendered by the ``Filter`` factories; composite
nodes carry children. ``build_filter`` serializes a tree to query syntax.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional, Tuple, Union

from ftquery.errors import EmptyFilterError, InvalidEnumValueError, MissingValueError
from ftquery.utils import get_logger
from ftquery.utils.escaping import (
    escape_field_name,
    escape_tag_value,
    escape_text,
    format_geo,
    format_number,
)

logger = get_logger(__name__)

WILDCARD = "*"


class _Buildable:
    def build(self) -> str:
        return build_filter(self)

    def __str__(self) -> str:
        return build_filter(self)


@dataclass(frozen=True)
class TextNode(_Buildable):
    expression: str
    field: Optional[str] = None


@dataclass(frozen=True)
class TagNode(_Buildable):
    expression: str
    field: Optional[str] = None


@dataclass(frozen=True)
class NumericNode(_Buildable):
    expression: str
    field: Optional[str] = None


@dataclass(frozen=True)
class GeoNode(_Buildable):
    expression: str
    field: Optional[str] = None


@dataclass(frozen=True)
class CustomNode(_Buildable):
    expression: str
    field: Optional[str] = None


@dataclass(frozen=True)
class AndNode(_Buildable):
    children: Tuple["FilterNode", ...]

    def __post_init__(self):
        _check_children(self.children)


@dataclass(frozen=True)
class OrNode(_Buildable):
    children: Tuple["FilterNode", ...]

    def __post_init__(self):
        _check_children(self.children)


@dataclass(frozen=True)
class NotNode(_Buildable):
    child: "FilterNode"

    def __post_init__(self):
        if self.child is None:
            raise EmptyFilterError("Filter is required")


FilterNode = Union[TextNode, TagNode, NumericNode, GeoNode, CustomNode, AndNode, OrNode, NotNode]
LEAF_TYPES = (TextNode, TagNode, NumericNode, GeoNode, CustomNode)


def _check_children(children: Tuple[Any, ...]) -> None:
    if not children:
        raise EmptyFilterError("At least one filter is required")
    if any(c is None for c in children):
        raise EmptyFilterError("Filter operands cannot be None")


def build_filter(node: FilterNode) -> str:
    """Compile a filter tree into RediSearch query syntax."""
    if isinstance(node, LEAF_TYPES):
        return node.expression
    if isinstance(node, AndNode):
        # "*" matches everything and contributes nothing to a conjunction
        parts = [build_filter(c) for c in node.children]
        parts = [p for p in parts if p != WILDCARD]
        if not parts:
            return WILDCARD
        return "(" + " ".join(parts) + ")"
    if isinstance(node, OrNode):
        return "(" + " | ".join(build_filter(c) for c in node.children) + ")"
    if isinstance(node, NotNode):
        return "-" + build_filter(node.child)
    raise TypeError(f"Unsupported filter node type: {type(node)!r}")


def render_filter(filter_expression: Union[FilterNode, str, None]) -> str:
    """Compile a node or pass a raw string through; ``None`` means ``*``."""
    if filter_expression is None:
        return WILDCARD
    if isinstance(filter_expression, str):
        return filter_expression.strip() or WILDCARD
    return build_filter(filter_expression)


def _validate_field(field: str) -> None:
    if field is None or not str(field).strip():
        raise MissingValueError("Field name is required")


def _validate_value(value: Any) -> None:
    if value is None:
        raise MissingValueError("Value is required")


class GeoUnit(str, Enum):
    M = "m"
    KM = "km"
    MI = "mi"
    FT = "ft"

    @classmethod
    def parse(cls, unit: Union["GeoUnit", str]) -> "GeoUnit":
        if isinstance(unit, GeoUnit):
            return unit
        if isinstance(unit, str):
            try:
                return cls(unit.strip().lower())
            except ValueError:
                pass
        raise InvalidEnumValueError(
            f"Invalid geo unit: {unit!r}. Supported units are: {[u.value for u in cls]}"
        )


_INCLUSIVE_MODES = {
    "both": (False, False),
    "neither": (True, True),
    "left": (False, True),
    "right": (True, False),
}


class NumericFilterBuilder:
    """Range filters over a numeric field."""

    def __init__(self, field: str):
        self._field = field

    def _node(self, low: str, high: str) -> NumericNode:
        expr = f"@{escape_field_name(self._field)}:[{low} {high}]"
        return NumericNode(expr, self._field)

    @staticmethod
    def _num(value) -> str:
        _validate_value(value)
        return format_number(value)

    def gt(self, value) -> NumericNode:
        return self._node(f"({self._num(value)}", "+inf")

    def gte(self, value) -> NumericNode:
        return self._node(self._num(value), "+inf")

    def lt(self, value) -> NumericNode:
        return self._node("-inf", f"({self._num(value)}")

    def lte(self, value) -> NumericNode:
        return self._node("-inf", self._num(value))

    def eq(self, value) -> NumericNode:
        rendered = self._num(value)
        return self._node(rendered, rendered)

    def ne(self, value) -> NotNode:
        return Filter.not_(self.eq(value))

    def between(self, low, high, inclusive: str = "both") -> NumericNode:
        mode = _INCLUSIVE_MODES.get(str(inclusive).lower()) if inclusive is not None else None
        if mode is None:
            raise InvalidEnumValueError(
                f"inclusive must be one of {sorted(_INCLUSIVE_MODES)}, got {inclusive!r}"
            )
        low_excl, high_excl = mode
        low_str = ("(" if low_excl else "") + self._num(low)
        high_str = ("(" if high_excl else "") + self._num(high)
        return self._node(low_str, high_str)


class GeoFilterBuilder:
    """Radius and bounding-box filters over a geo field."""

    def __init__(self, field: str):
        self._field = field

    def radius(self, lon: float, lat: float, radius: float, unit="km") -> GeoNode:
        for v in (lon, lat, radius):
            _validate_value(v)
        unit = GeoUnit.parse(unit)
        expr = (
            f"@{escape_field_name(self._field)}:"
            f"[{format_number(lon)} {format_number(lat)} {format_number(radius)} {unit.value}]"
        )
        return GeoNode(expr, self._field)

    def not_radius(self, lon: float, lat: float, radius: float, unit="km") -> NotNode:
        return Filter.not_(self.radius(lon, lat, radius, unit))

    def box(self, min_lon: float, min_lat: float, max_lon: float, max_lat: float) -> GeoNode:
        coords = (min_lon, min_lat, max_lon, max_lat)
        for v in coords:
            _validate_value(v)
        expr = f"@{escape_field_name(self._field)}:[{' '.join(format_geo(v) for v in coords)}]"
        return GeoNode(expr, self._field)


def _epoch_seconds(value: Union[int, float, datetime, date]) -> int:
    _validate_value(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())
    if isinstance(value, date):
        return int(datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp())
    return int(value)


class TimestampFilterBuilder:
    """Numeric range filters over epoch-second timestamps.

    Naive datetimes are interpreted as UTC, dates as UTC midnight.
    """

    def __init__(self, field: str):
        self._numeric = NumericFilterBuilder(field)

    def after(self, value) -> NumericNode:
        return self._numeric.gt(_epoch_seconds(value))

    def before(self, value) -> NumericNode:
        return self._numeric.lt(_epoch_seconds(value))

    def between(self, start, end) -> NumericNode:
        return self._numeric.between(_epoch_seconds(start), _epoch_seconds(end))

    def eq(self, value) -> NumericNode:
        return self._numeric.eq(_epoch_seconds(value))

    gt = after
    lt = before


class Filter:
    """Factory functions for filter nodes."""

    @staticmethod
    def text(field: str, value: str) -> TextNode:
        _validate_field(field)
        _validate_value(value)
        escaped = escape_text(value)
        if any(ch.isspace() for ch in value):
            expr = f"@{escape_field_name(field)}:({escaped})"
        else:
            expr = f"@{escape_field_name(field)}:{escaped}"
        return TextNode(expr, field)

    @staticmethod
    def tag(field: str, *values: Union[str, Iterable[str]]):
        _validate_field(field)
        if len(values) == 1 and isinstance(values[0], (set, frozenset)):
            values = tuple(sorted(values[0], key=str))
        elif len(values) == 1 and isinstance(values[0], (list, tuple)):
            values = tuple(values[0])
        if not values:
            logger.debug("Empty tag value list for field %s, matching all documents", field)
            return CustomNode(WILDCARD, field)
        for v in values:
            _validate_value(v)
        joined = "|".join(escape_tag_value(str(v)) for v in values)
        return TagNode(f"@{escape_field_name(field)}:{{{joined}}}", field)

    @staticmethod
    def numeric(field: str) -> NumericFilterBuilder:
        _validate_field(field)
        return NumericFilterBuilder(field)

    @staticmethod
    def geo(field: str) -> GeoFilterBuilder:
        _validate_field(field)
        return GeoFilterBuilder(field)

    @staticmethod
    def timestamp(field: str) -> TimestampFilterBuilder:
        _validate_field(field)
        return TimestampFilterBuilder(field)

    @staticmethod
    def wildcard(field: str, pattern: str) -> TextNode:
        _validate_field(field)
        _validate_value(pattern)
        return TextNode(f"@{escape_field_name(field)}:{pattern}", field)

    @staticmethod
    def prefix(field: str, prefix: str) -> TextNode:
        _validate_field(field)
        _validate_value(prefix)
        return TextNode(f"@{escape_field_name(field)}:{prefix}*", field)

    @staticmethod
    def fuzzy(field: str, value: str) -> TextNode:
        _validate_field(field)
        _validate_value(value)
        return TextNode(f"@{escape_field_name(field)}:%{value}%", field)

    @staticmethod
    def exact(field: str, value: str) -> TextNode:
        _validate_field(field)
        _validate_value(value)
        return TextNode(f'@{escape_field_name(field)}:"{value}"', field)

    @staticmethod
    def conditional(field: str, pattern: str) -> TextNode:
        _validate_field(field)
        _validate_value(pattern)
        return TextNode(f"@{escape_field_name(field)}:({pattern})", field)

    @staticmethod
    def custom(expression: str) -> CustomNode:
        if expression is None or not expression.strip():
            raise MissingValueError("Expression is required")
        return CustomNode(expression)

    @staticmethod
    def tag_not(field: str, *values: str) -> NotNode:
        return Filter.not_(Filter.tag(field, *values))

    @staticmethod
    def text_not(field: str, value: str) -> NotNode:
        return Filter.not_(Filter.text(field, value))

    @staticmethod
    def and_(*filters: FilterNode) -> AndNode:
        return AndNode(tuple(filters))

    @staticmethod
    def or_(*filters: FilterNode) -> OrNode:
        return OrNode(tuple(filters))

    @staticmethod
    def not_(filter_node: FilterNode) -> NotNode:
        return NotNode(filter_node)
