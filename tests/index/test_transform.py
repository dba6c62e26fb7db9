from __future__ import annotations

import pytest

from tripledex.index.analysis import analyze, build_term_vector
from tripledex.index.transform import no_transform, resolve_transform, strip_markup


def test_no_transform_is_identity() -> None:
    text = "ex:Alice\tex:knows\tex:Bob\t.\n"
    assert no_transform(text) == text


def test_strip_markup_drops_tags_and_collapses_whitespace() -> None:
    html = "<html><body><h1>Title</h1>\n\n<p>First   paragraph</p><p>Second</p></body></html>"
    assert strip_markup(html) == "Title First paragraph Second"


def test_resolve_transform_by_name() -> None:
    assert resolve_transform("none") is no_transform
    assert resolve_transform(" Markup ") is strip_markup
    with pytest.raises(ValueError):
        resolve_transform("stemmer")


def test_analyze_lowercases_and_drops_punctuation() -> None:
    assert analyze("Red fox, red HEN!") == ["red", "fox", "red", "hen"]


def test_term_vector_positions_follow_token_order() -> None:
    assert build_term_vector("a b a") == {"a": [0, 2], "b": [1]}
