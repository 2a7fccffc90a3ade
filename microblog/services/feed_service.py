"""Read side: published feed, author dashboards and the tag directory."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import and_, desc, func, select
from sqlalchemy.orm import selectinload

from microblog.errors import NotFoundError, ValidationError
from microblog.identity import Identity, require_user
from microblog.models.post import Post, PostTag, Tag
from microblog.schemas.post import PostStatus, TagCount
from microblog.services.pagination import Page, paginate
from microblog.utils.tags import normalize_tag

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class FeedService:
    """Service for post listings."""

    def list_published(
        self,
        db: Session,
        page: int = 1,
        per_page: int = 10,
        tag: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> Page[Post]:
        """Published posts, newest first.

        Args:
            db: Database session
            page: 1-based page number
            per_page: Page size, capped at the configured maximum
            tag: Only posts carrying this tag (any spelling of it)
            date_from: Inclusive lower bound on published_at
            date_to: Inclusive upper bound on published_at

        Returns:
            Page of posts with total counts
        """
        query = (
            db.query(Post)
            .options(selectinload(Post.tag_links))
            .filter(Post.status == PostStatus.PUBLISHED.value)
        )
        if date_from is not None:
            query = query.filter(Post.published_at >= _as_utc(date_from))
        if date_to is not None:
            query = query.filter(Post.published_at <= _as_utc(date_to))
        if tag:
            tagged = (
                select(PostTag.post_id)
                .join(Tag, Tag.id == PostTag.tag_id)
                .where(Tag.name == normalize_tag(tag))
            )
            query = query.filter(Post.id.in_(tagged))

        query = query.order_by(desc(Post.published_at), desc(Post.created_at))
        return paginate(query, page, per_page)

    def list_by_author(
        self,
        db: Session,
        identity: Identity | None,
        status: str,
        page: int = 1,
        per_page: int = 10,
    ) -> Page[Post]:
        """The caller's own drafts or published posts."""
        user = require_user(identity)
        try:
            status = PostStatus(status)
        except ValueError:
            raise ValidationError.for_field(
                "status", "Status must be draft or published"
            ) from None

        order_column = (
            Post.updated_at if status is PostStatus.DRAFT else Post.published_at
        )
        query = (
            db.query(Post)
            .options(selectinload(Post.tag_links))
            .filter(Post.author_id == user.id, Post.status == status.value)
            .order_by(desc(order_column))
        )
        return paginate(query, page, per_page)

    def list_tags(self, db: Session) -> list[TagCount]:
        """All tags with their published post counts, most used first."""
        post_count = func.count(Post.id)
        rows = (
            db.query(Tag, post_count)
            .outerjoin(PostTag, PostTag.tag_id == Tag.id)
            .outerjoin(
                Post,
                and_(
                    Post.id == PostTag.post_id,
                    Post.status == PostStatus.PUBLISHED.value,
                ),
            )
            .group_by(Tag.id)
            .order_by(desc(post_count), Tag.name)
            .all()
        )
        return [
            TagCount(name=tag.name, display_name=tag.display_name, post_count=count)
            for tag, count in rows
        ]

    def list_by_tag(
        self, db: Session, tag: str, page: int = 1, per_page: int = 10
    ) -> tuple[Tag, Page[Post]]:
        tag_row = db.query(Tag).filter(Tag.name == normalize_tag(tag)).first()
        if tag_row is None:
            raise NotFoundError("Tag not found")
        return tag_row, self.list_published(db, page, per_page, tag=tag_row.name)


# Singleton instance
feed_service = FeedService()
