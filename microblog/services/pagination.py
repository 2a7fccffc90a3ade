"""Offset pagination over SQLAlchemy queries."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy.orm import Query

from microblog.config import settings
from microblog.errors import ValidationError
from microblog.schemas.common import PageMeta

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    page: int
    per_page: int
    total: int
    items: list[T] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.total else 0

    @property
    def meta(self) -> PageMeta:
        return PageMeta(
            page=self.page,
            per_page=self.per_page,
            total=self.total,
            total_pages=self.total_pages,
        )


def check_paging(page: int, per_page: int) -> tuple[int, int]:
    """Validate paging input and cap ``per_page`` at the configured maximum."""
    errors: dict[str, list[str]] = {}
    if page < 1:
        errors["page"] = ["Page must be 1 or greater"]
    if per_page < 1:
        errors["per_page"] = ["Per-page must be 1 or greater"]
    if errors:
        raise ValidationError("Invalid pagination", errors)
    return page, min(per_page, settings.max_per_page)


def paginate(query: Query, page: int, per_page: int) -> Page:
    page, per_page = check_paging(page, per_page)
    total = query.order_by(None).count()
    items = query.limit(per_page).offset((page - 1) * per_page).all()
    return Page(page=page, per_page=per_page, total=total, items=items)
