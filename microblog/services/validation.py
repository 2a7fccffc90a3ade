"""Field validators.

Each returns a field -> messages map; an empty map means the input is valid.
"""

from __future__ import annotations

from collections.abc import Sequence

from microblog.errors import FieldErrors
from microblog.utils.tags import MAX_TAGS

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 50_000
MAX_AUTHOR_NAME_LENGTH = 100
MAX_COMMENT_LENGTH = 2000


def _check_text(
    errors: FieldErrors,
    field: str,
    value: str | None,
    max_length: int,
    required: str,
    too_long: str,
) -> None:
    if not value or not value.strip():
        errors[field] = [required]
    elif len(value) > max_length:
        errors[field] = [too_long]


def validate_post_fields(
    title: str | None = None,
    content: str | None = None,
    tags: Sequence[str] | None = None,
    partial: bool = False,
) -> FieldErrors:
    """Check post input; with ``partial`` only the provided fields are checked."""
    errors: FieldErrors = {}
    if not partial or title is not None:
        _check_text(
            errors,
            "title",
            title,
            MAX_TITLE_LENGTH,
            "Title is required",
            f"Title must be {MAX_TITLE_LENGTH} characters or less",
        )
    if not partial or content is not None:
        _check_text(
            errors,
            "content",
            content,
            MAX_CONTENT_LENGTH,
            "Content is required",
            "Content must be 50,000 characters or less",
        )
    if tags is not None and len(tags) > MAX_TAGS:
        errors["tags"] = [f"Maximum {MAX_TAGS} tags allowed"]
    return errors


def validate_comment_fields(author_name: str | None, content: str | None) -> FieldErrors:
    errors: FieldErrors = {}
    _check_text(
        errors,
        "content",
        content,
        MAX_COMMENT_LENGTH,
        "Comment content is required",
        f"Comment must be {MAX_COMMENT_LENGTH} characters or less",
    )
    _check_text(
        errors,
        "author_name",
        author_name,
        MAX_AUTHOR_NAME_LENGTH,
        "Author name is required",
        f"Author name must be {MAX_AUTHOR_NAME_LENGTH} characters or less",
    )
    return errors
