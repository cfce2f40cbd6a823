# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""Built-in stopword sets used when tokenizing lexical query text."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Union

from ftquery.errors import InvalidEnumValueError

ENGLISH_STOPWORDS: FrozenSet[str] = frozenset(
    [
        "a", "an", "and", "are", "as", "at", "be", "but", "by", "for",
        "if", "in", "into", "is", "it", "no", "not", "of", "on", "or",
        "such", "that", "the", "their", "then", "there", "these", "they",
        "this", "to", "was", "will", "with",
    ]
)  # fmt: skip

_BUILTIN = {"english": ENGLISH_STOPWORDS}

StopwordsInput = Union[str, Iterable[str], None]


def load_stopwords(stopwords: StopwordsInput) -> FrozenSet[str]:
    """Resolve a language name, an explicit word collection or ``None`` to a set.

    Words are lower-cased; ``None`` disables stopword removal.
    """
    if stopwords is None:
        return frozenset()
    if isinstance(stopwords, str):
        language = stopwords.strip().lower()
        if language not in _BUILTIN:
            raise InvalidEnumValueError(
                f"No built-in stopwords for language {stopwords!r}. "
                f"Available: {available_languages()}"
            )
        return _BUILTIN[language]
    return frozenset(str(w).strip().lower() for w in stopwords if w is not None)


def available_languages() -> List[str]:
    return sorted(_BUILTIN)
