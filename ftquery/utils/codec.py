# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""
Vector payload encoding.

Vectors travel to the engine as contiguous little-endian buffers that are
compared byte-for-byte with stored vector data, so ``buffer_to_array`` must be
the exact inverse of ``array_to_buffer``.
"""

from __future__ import annotations

import math
import numbers
import struct
from typing import Iterable, List, Union

from ftquery.errors import InvalidEnumValueError, VectorDimensionError

# dtype -> (struct code, item size)
_STRUCT_CODES = {
    "float16": ("e", 2),
    "float32": ("f", 4),
    "float64": ("d", 8),
    "int8": ("b", 1),
    "uint8": ("B", 1),
}
BFLOAT16 = "bfloat16"

SUPPORTED_DTYPES = frozenset([*_STRUCT_CODES, BFLOAT16])
_INTEGER_DTYPES = frozenset(["int8", "uint8"])


def normalize_dtype(dtype: str) -> str:
    """Canonicalize a dtype tag (case-insensitive) or raise."""
    if not isinstance(dtype, str) or dtype.strip().lower() not in SUPPORTED_DTYPES:
        raise InvalidEnumValueError(
            f"Invalid data type: {dtype}. Supported types are: {sorted(SUPPORTED_DTYPES)}"
        )
    return dtype.strip().lower()


def check_vector_values(values: Iterable[Union[int, float]], dtype: str) -> List[Union[int, float]]:
    if values is None:
        raise VectorDimensionError("Vector is required")
    checked: List[Union[int, float]] = []
    for i, v in enumerate(values):
        if v is None:
            raise VectorDimensionError(f"Vector element {i} is None")
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            raise VectorDimensionError(f"Vector element {i} is not a number: {v!r}")
        if dtype in _INTEGER_DTYPES:
            if not float(v).is_integer():
                raise VectorDimensionError(f"Vector element {i} is not an integer: {v!r}")
            checked.append(int(v))
        else:
            checked.append(float(v))
    return checked


def _float_to_bfloat16_bits(value: float) -> int:
    (bits,) = struct.unpack("<I", struct.pack("<f", value))
    if math.isnan(value):
        return (bits >> 16) | 0x40
    # round to nearest, ties to even
    rounding = 0x7FFF + ((bits >> 16) & 1)
    return ((bits + rounding) >> 16) & 0xFFFF


def array_to_buffer(values: Iterable[Union[int, float]], dtype: str = "float32") -> bytes:
    """Pack numbers into a little-endian buffer of the given dtype."""
    dtype = normalize_dtype(dtype)
    checked = check_vector_values(values, dtype)
    if dtype == BFLOAT16:
        halves = [_float_to_bfloat16_bits(v) for v in checked]
        return struct.pack(f"<{len(halves)}H", *halves)
    code, _ = _STRUCT_CODES[dtype]
    try:
        return struct.pack(f"<{len(checked)}{code}", *checked)
    except (struct.error, OverflowError) as e:
        raise VectorDimensionError(f"Vector values do not fit dtype {dtype}: {e}") from e


def buffer_to_array(buffer: bytes, dtype: str = "float32") -> List[Union[int, float]]:
    """Unpack a little-endian buffer produced by :func:`array_to_buffer`."""
    dtype = normalize_dtype(dtype)
    if buffer is None:
        raise VectorDimensionError("Buffer is required")
    if dtype == BFLOAT16:
        code, size = "H", 2
    else:
        code, size = _STRUCT_CODES[dtype]
    if len(buffer) % size != 0:
        raise VectorDimensionError(
            f"Buffer length {len(buffer)} is not a multiple of {size} for dtype {dtype}"
        )
    count = len(buffer) // size
    items = list(struct.unpack(f"<{count}{code}", bytes(buffer)))
    if dtype == BFLOAT16:
        return [struct.unpack("<f", struct.pack("<I", h << 16))[0] for h in items]
    return items


def norm_cosine_distance(value: float) -> float:
    """Map a cosine distance in [0, 2] to a similarity in [0, 1]."""
    return max((2.0 - value) / 2.0, 0.0)


def denorm_cosine_distance(value: float) -> float:
    """Inverse of :func:`norm_cosine_distance`."""
    return max(2.0 - 2.0 * value, 0.0)
