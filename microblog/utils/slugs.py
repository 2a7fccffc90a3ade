"""URL slug helpers."""

from __future__ import annotations

import re

from slugify import slugify

# Dropped outright instead of becoming separators ("don't" -> "dont")
_REMOVED = re.compile(r"[*+~.()'\"!:@]")


def generate_slug(title: str) -> str:
    """Generate URL-safe slug from title.

    Slugs are not unique; posts are looked up by id.

    Args:
        title: Post title

    Returns:
        URL-safe slug
    """
    return slugify(_REMOVED.sub("", title), max_length=200)
