"""Tokenization used for per-document term vectors."""

from __future__ import annotations

import re

from razdel import tokenize


_WORD_RE = re.compile(r"\w+", re.UNICODE)


def analyze(text: str) -> list[str]:
    """Return lowercased word tokens in document order."""

    terms: list[str] = []
    for token in tokenize(text.lower()):
        value = token.text.strip()
        if value and _WORD_RE.fullmatch(value):
            terms.append(value)
    return terms


def build_term_vector(text: str) -> dict[str, list[int]]:
    """Map each term to the token positions where it occurs.

    Term frequency is the length of the position list.
    """

    vector: dict[str, list[int]] = {}
    for position, term in enumerate(analyze(text)):
        vector.setdefault(term, []).append(position)
    return vector
