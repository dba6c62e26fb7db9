"""Pluggable content transforms applied before a record's body is indexed."""

from __future__ import annotations

import re
from typing import Callable

from bs4 import BeautifulSoup

StringTransform = Callable[[str], str]

_WHITESPACE_RE = re.compile(r"\s+")


def no_transform(text: str) -> str:
    """Identity strategy: index the record content as-is."""

    return text


def strip_markup(text: str) -> str:
    """Drop HTML/XML tags and collapse whitespace in the remaining text."""

    soup = BeautifulSoup(text, "lxml")
    return _WHITESPACE_RE.sub(" ", soup.get_text(" ", strip=True)).strip()


TRANSFORMS: dict[str, StringTransform] = {
    "none": no_transform,
    "markup": strip_markup,
}


def resolve_transform(name: str) -> StringTransform:
    key = name.strip().lower()
    try:
        return TRANSFORMS[key]
    except KeyError:
        supported = ", ".join(sorted(TRANSFORMS))
        raise ValueError(f"Unsupported transform: {name!r} (expected one of: {supported})") from None
