"""Post lifecycle: drafts, publishing, ownership and tag association."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from microblog.database import insert_ignore, transaction
from microblog.errors import ForbiddenError, NotFoundError, ValidationError
from microblog.identity import Identity, require_user
from microblog.models.post import Post, PostTag, Tag, utcnow
from microblog.observability.metrics import POSTS_PUBLISHED
from microblog.schemas.post import PostStatus
from microblog.security import QuotaLimiter, post_quota
from microblog.services.validation import validate_post_fields
from microblog.utils.slugs import generate_slug
from microblog.utils.tags import display_names, normalize_tags

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def get_published_post(db: Session, post_id: uuid.UUID | None) -> Post:
    """Return a published post or raise NotFoundError."""
    post = db.get(Post, post_id) if post_id is not None else None
    if post is None or post.status != PostStatus.PUBLISHED.value:
        raise NotFoundError("Post not found")
    return post


class PostService:
    """Service for the draft -> published post lifecycle."""

    def __init__(self, quota: QuotaLimiter | None = None):
        self.quota = quota or post_quota

    def create_draft(
        self,
        db: Session,
        identity: Identity | None,
        title: str | None,
        content: str | None,
        tags: Sequence[str] = (),
    ) -> Post:
        """Create a draft owned by the caller.

        Tags that normalize to nothing are dropped with a warning; the draft
        is still created.

        Raises:
            UnauthorizedError: No caller identity
            RateLimitError: Post quota exhausted
            ValidationError: Invalid title, content or tag count
        """
        user = require_user(identity)
        self.quota.enforce(str(user.id))

        tags = list(tags)
        errors = validate_post_fields(title, content, tags)
        if errors:
            raise ValidationError("Validation failed", errors)

        post = Post(
            author_id=user.id,
            title=title.strip(),
            slug=generate_slug(title),
            content=content.strip(),
            status=PostStatus.DRAFT.value,
        )
        with transaction(db, "Failed to create post"):
            db.add(post)
            db.flush()
            try:
                names = normalize_tags(tags)
            except ValidationError as exc:
                logger.warning(
                    "Creating post without tags",
                    extra={"post_id": str(post.id), "reason": exc.message},
                )
                names = []
            self._link_tags(db, post, names, display_names(tags))

        logger.info("Draft created", extra={"post_id": str(post.id)})
        return post

    def update_draft(
        self,
        db: Session,
        identity: Identity | None,
        post_id: uuid.UUID,
        title: str | None = None,
        content: str | None = None,
        tags: Sequence[str] | None = None,
    ) -> Post:
        """Apply the provided fields to a draft; ``None`` leaves a field as is.

        Provided tags replace the post's whole tag set.
        """
        user = require_user(identity)
        post = self._get_owned(db, post_id, user, "edit")
        if post.status != PostStatus.DRAFT.value:
            raise ForbiddenError("Cannot edit published posts")

        errors = validate_post_fields(title, content, tags, partial=True)
        if errors:
            raise ValidationError("Validation failed", errors)
        names = normalize_tags(tags) if tags is not None else None

        with transaction(db, "Failed to update post"):
            if title is not None:
                post.title = title.strip()
                post.slug = generate_slug(title)
            if content is not None:
                post.content = content.strip()
            post.updated_at = utcnow()
            if names is not None:
                db.query(PostTag).filter(PostTag.post_id == post.id).delete(
                    synchronize_session=False
                )
                self._link_tags(db, post, names, display_names(tags))

        return post

    def publish(self, db: Session, identity: Identity | None, post_id: uuid.UUID) -> Post:
        """Publish a draft. There is no way back to draft."""
        user = require_user(identity)
        post = self._get_owned(db, post_id, user, "publish")
        if post.status == PostStatus.PUBLISHED.value:
            raise ForbiddenError("Post is already published")

        now = utcnow()
        with transaction(db, "Failed to publish post"):
            post.status = PostStatus.PUBLISHED.value
            post.published_at = now
            post.updated_at = now

        POSTS_PUBLISHED.inc()
        logger.info("Post published", extra={"post_id": str(post.id)})
        return post

    def delete_draft(
        self, db: Session, identity: Identity | None, post_id: uuid.UUID
    ) -> None:
        user = require_user(identity)
        post = self._get_owned(db, post_id, user, "delete")
        if post.status != PostStatus.DRAFT.value:
            raise ForbiddenError("Cannot delete published posts")

        with transaction(db, "Failed to delete post"):
            db.delete(post)

    def get_for_viewer(
        self, db: Session, post_id: uuid.UUID, viewer: Identity | None = None
    ) -> Post:
        """Fetch a post; drafts only exist for their author."""
        post = db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.status != PostStatus.PUBLISHED.value and (
            viewer is None or viewer.id != post.author_id
        ):
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def _get_owned(db: Session, post_id: uuid.UUID, user: Identity, action: str) -> Post:
        post = db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.author_id != user.id:
            raise ForbiddenError(f"You can only {action} your own posts")
        return post

    @staticmethod
    def _link_tags(
        db: Session, post: Post, names: list[str], spellings: dict[str, str]
    ) -> None:
        """Upsert each tag by name, then link it to the post.

        Both inserts ignore unique-key conflicts so concurrent requests using
        the same tag neither duplicate it nor fail.
        """
        for position, name in enumerate(names):
            insert_ignore(
                db,
                Tag,
                {"name": name, "display_name": spellings.get(name, name)},
                conflict=["name"],
            )
            tag_id = db.query(Tag.id).filter(Tag.name == name).scalar()
            insert_ignore(
                db,
                PostTag,
                {"post_id": post.id, "tag_id": tag_id, "position": position},
                conflict=["post_id", "tag_id"],
            )
        db.expire(post, ["tag_links"])


# Singleton instance
post_service = PostService()
