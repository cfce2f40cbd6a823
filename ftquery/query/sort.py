# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Sort specification parsing.

RediSearch sorts by at most one field. Callers may still pass several; the
normalizer keeps the first and logs the rest as discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from ftquery.errors import InvalidEnumValueError, MissingValueError
from ftquery.utils import get_logger

logger = get_logger(__name__)

ASC = "ASC"
DESC = "DESC"


@dataclass(frozen=True)
class SortField:
    field_name: str
    ascending: bool = True

    def __post_init__(self):
        object.__setattr__(self, "field_name", _validate_field_name(self.field_name))

    @classmethod
    def asc(cls, field_name: str) -> "SortField":
        return cls(_validate_field_name(field_name), True)

    @classmethod
    def desc(cls, field_name: str) -> "SortField":
        return cls(_validate_field_name(field_name), False)

    @property
    def direction(self) -> str:
        return ASC if self.ascending else DESC


SortItem = Union[str, Tuple[str, str], SortField]
SortSpec = Union[SortItem, Sequence[SortItem], None]


def _validate_field_name(field: str) -> str:
    if field is None or not isinstance(field, str) or not field.strip():
        raise MissingValueError("Field name cannot be null or empty")
    return field.strip()


def normalize_direction(direction: str) -> str:
    """Return ``ASC`` or ``DESC`` for a case-insensitive direction string."""
    if direction is None or not isinstance(direction, str) or not direction.strip():
        raise InvalidEnumValueError("Sort direction cannot be null or empty")
    normalized = direction.strip().upper()
    if normalized not in (ASC, DESC):
        raise InvalidEnumValueError(f"Sort direction must be 'ASC' or 'DESC', got: '{direction}'")
    return normalized


def _is_pair(item) -> bool:
    return (
        isinstance(item, tuple)
        and len(item) == 2
        and isinstance(item[0], str)
        and (item[1] is None or isinstance(item[1], str))
    )


def _parse_item(item: SortItem) -> SortField:
    if isinstance(item, SortField):
        return item
    if isinstance(item, str):
        return SortField(_validate_field_name(item), True)
    if _is_pair(item):
        field, direction = item
        return SortField(_validate_field_name(field), normalize_direction(direction) == ASC)
    if item is None:
        raise MissingValueError("SortField cannot be None")
    raise InvalidEnumValueError(f"Unsupported sort specification: {item!r}")


def parse_sort_spec(spec: SortSpec, direction: Optional[str] = None) -> List[SortField]:
    """Parse any accepted sort specification into a list of fields.

    Accepts a field name (with an optional direction), a ``(field, direction)``
    tuple, a :class:`SortField`, or a list of those.
    """
    if direction is not None:
        if not isinstance(spec, str):
            raise InvalidEnumValueError("A direction can only be given with a field name")
        return [SortField(_validate_field_name(spec), normalize_direction(direction) == ASC)]
    if spec is None:
        return []
    if isinstance(spec, (str, SortField)) or _is_pair(spec):
        return [_parse_item(spec)]
    return [_parse_item(item) for item in spec]


def normalize_sort_spec(spec: SortSpec, direction: Optional[str] = None) -> Optional[SortField]:
    """Reduce a sort specification to the single field the engine supports."""
    fields = parse_sort_spec(spec, direction)
    if not fields:
        return None
    if len(fields) > 1:
        logger.warning(
            "Multiple sort fields specified (%d), but Redis Search only supports single-field "
            "sorting. Using first field: '%s', discarding: %s",
            len(fields),
            fields[0].field_name,
            [f.field_name for f in fields[1:]],
        )
    return fields[0]
