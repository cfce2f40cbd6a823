# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""String and number rendering for RediSearch query syntax."""

from __future__ import annotations

import math
import numbers
import re
from typing import Optional, Pattern, Union

from ftquery.errors import MissingValueError, OutOfRangeError, QueryValidationError

# Characters with syntactic meaning in free-text query terms.
TEXT_SPECIAL_CHARS = "\\-@:*[](){}+~\"'/%<>=|&^$.,!?;"

DEFAULT_ESCAPED_CHARS = re.compile("[" + re.escape(TEXT_SPECIAL_CHARS) + "]")
TAG_ESCAPED_CHARS = re.compile("[" + re.escape(TEXT_SPECIAL_CHARS + " ") + "]")

JSON_PATH_PREFIX = "$."


class TokenEscaper:
    """Backslash-escape every character matched by a character-class pattern."""

    def __init__(self, escape_chars_re: Optional[Pattern[str]] = None):
        self.escaped_chars_re = escape_chars_re or DEFAULT_ESCAPED_CHARS

    def escape(self, value: str) -> str:
        if value is None:
            raise MissingValueError("Value must be a string object for token escaping, got None")
        if not isinstance(value, str):
            raise QueryValidationError(
                f"Value must be a string object for token escaping, got {type(value).__name__}"
            )
        return self.escaped_chars_re.sub(lambda m: "\\" + m.group(0), value)


_text_escaper = TokenEscaper()
_tag_escaper = TokenEscaper(TAG_ESCAPED_CHARS)


def escape_text(value: str) -> str:
    """Escape a free-text term. Spaces are left alone."""
    return _text_escaper.escape(value)


def escape_tag_value(value: str) -> str:
    """Escape a tag value, including spaces, for use inside ``{...}``."""
    return _tag_escaper.escape(value)


def escape_field_name(field: str) -> str:
    """Escape ``$`` and ``.`` in JSON path style field names (``$.a.b``)."""
    if field is None:
        return None
    if field.startswith(JSON_PATH_PREFIX):
        return field.replace("$", "\\$").replace(".", "\\.")
    return field


def format_number(value: Union[int, float]) -> str:
    """Render a number without superfluous fractional digits.

    Integral floats print as integers, infinities as ``+inf``/``-inf``.
    Output never depends on the process locale.
    """
    if value is None:
        raise MissingValueError("Numeric value is required")
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise QueryValidationError(f"Expected a number, got {value!r}")
    if isinstance(value, numbers.Integral):
        return str(int(value))
    value = float(value)
    if math.isnan(value):
        raise OutOfRangeError("NaN is not a valid numeric literal")
    if math.isinf(value):
        return "+inf" if value > 0 else "-inf"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_float(value: float) -> str:
    """Render a float with at least one fractional digit (``2.0``, ``0.25``)."""
    if value is None:
        raise MissingValueError("Numeric value is required")
    return repr(float(value))


def format_geo(value: float) -> str:
    """Fixed six-decimal rendering used by geo bounding boxes."""
    if value is None:
        raise MissingValueError("Coordinate is required")
    return "%f" % float(value)
