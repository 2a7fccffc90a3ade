"""Tag normalization helpers."""

from __future__ import annotations

import re
from collections.abc import Sequence

from microblog.errors import ValidationError

MAX_TAGS = 5
MAX_TAG_LENGTH = 50
MAX_DISPLAY_NAME_LENGTH = 255

_WHITESPACE = re.compile(r"\s+")
_INVALID = re.compile(r"[^a-z0-9-]")
_VALID = re.compile(r"^[a-z0-9-]{1,50}$")


def normalize_tag(raw: str) -> str:
    """Return the canonical form of a tag, e.g. "Machine Learning" -> "machine-learning"."""
    tag = _WHITESPACE.sub("-", raw.strip().lower())
    return _INVALID.sub("", tag)[:MAX_TAG_LENGTH]


def normalize_tags(raw_tags: Sequence[str]) -> list[str]:
    """Normalize a post's tag input.

    Args:
        raw_tags: Tags as typed by the user

    Returns:
        Canonical tags without empties or duplicates, in input order

    Raises:
        ValidationError: More than five tags, or none survived normalization
    """
    if len(raw_tags) > MAX_TAGS:
        raise ValidationError.for_field("tags", f"Maximum {MAX_TAGS} tags allowed")

    normalized = list(dict.fromkeys(t for t in map(normalize_tag, raw_tags) if t))
    if raw_tags and not normalized:
        raise ValidationError.for_field("tags", "At least one valid tag required")
    return normalized


def display_names(raw_tags: Sequence[str]) -> dict[str, str]:
    """Map each canonical tag to the first raw spelling that produced it.

    Spellings are cut to the length of the ``tags.display_name`` column.
    """
    names: dict[str, str] = {}
    for raw in raw_tags:
        name = normalize_tag(raw)
        if name:
            names.setdefault(name, raw.strip()[:MAX_DISPLAY_NAME_LENGTH])
    return names


def is_valid_tag(raw: str) -> bool:
    return bool(_VALID.match(normalize_tag(raw)))
