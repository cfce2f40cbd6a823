# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Query-compilation exceptions."""


class FTQueryException(Exception):
    """Base exception for query compilation."""


class QueryValidationError(FTQueryException, ValueError):
    """Raised when a filter, query or vector fails validation at construction time."""


class MissingValueError(QueryValidationError):
    """Raised when a required field name or value is missing or blank."""


class EmptyFilterError(QueryValidationError):
    """Raised when a composite filter is built without operands."""


class InvalidEnumValueError(QueryValidationError):
    """Raised when a value is not one of an enumerated set."""


class OutOfRangeError(QueryValidationError):
    """Raised when a numeric parameter is outside its allowed range."""


class VectorDimensionError(QueryValidationError):
    """Raised when vector data is empty, malformed or contains null elements."""
