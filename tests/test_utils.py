"""Tests for tag normalization and slug generation."""

from __future__ import annotations

import pytest

from microblog.errors import ValidationError
from microblog.utils.slugs import generate_slug
from microblog.utils.tags import (
    display_names,
    is_valid_tag,
    normalize_tag,
    normalize_tags,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Machine Learning", "machine-learning"),
        ("  Web   Dev  ", "web-dev"),
        ("C++", "c"),
        ("node.js", "nodejs"),
        ("already-fine", "already-fine"),
        ("!!!", ""),
    ],
)
def test_normalize_tag(raw, expected):
    assert normalize_tag(raw) == expected


def test_normalize_tag_truncates_to_50():
    assert normalize_tag("a" * 80) == "a" * 50


def test_normalize_tag_is_idempotent():
    for raw in ["Machine Learning", "  API Design ", "Über cool", "x" * 70]:
        once = normalize_tag(raw)
        assert normalize_tag(once) == once


def test_normalize_tags_keeps_order_and_drops_duplicates():
    assert normalize_tags(["Web Dev", "API", "web-dev", "  "]) == ["web-dev", "api"]


def test_normalize_tags_empty_input_is_allowed():
    assert normalize_tags([]) == []


def test_normalize_tags_rejects_more_than_five():
    with pytest.raises(ValidationError) as exc_info:
        normalize_tags(["a", "b", "c", "d", "e", "f"])
    assert exc_info.value.details == {"tags": ["Maximum 5 tags allowed"]}


def test_normalize_tags_rejects_all_invalid():
    with pytest.raises(ValidationError) as exc_info:
        normalize_tags(["!!!", "   "])
    assert exc_info.value.message == "At least one valid tag required"


def test_display_names_keep_first_spelling():
    assert display_names(["Web Dev", "web-dev", "API"]) == {
        "web-dev": "Web Dev",
        "api": "API",
    }


def test_is_valid_tag():
    assert is_valid_tag("Python")
    assert not is_valid_tag("???")


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Hello World", "hello-world"),
        ("Don't Panic!", "dont-panic"),
        ("  Spaces   everywhere  ", "spaces-everywhere"),
        ("Café au lait", "cafe-au-lait"),
        ("Version 2.0: what's new?", "version-20-whats-new"),
    ],
)
def test_generate_slug(title, expected):
    assert generate_slug(title) == expected


def test_generate_slug_is_bounded():
    assert len(generate_slug("word " * 100)) <= 200


def test_display_names_fit_the_column():
    raw = "Long " + "x" * 300
    names = display_names([raw])
    assert list(names) == [normalize_tag(raw)]
    assert len(names[normalize_tag(raw)]) == 255
