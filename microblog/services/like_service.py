"""Like toggling for published posts."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from microblog.database import insert_ignore, transaction
from microblog.identity import Identity, require_user
from microblog.models.like import Like
from microblog.observability.metrics import LIKE_TOGGLES
from microblog.schemas.like import LikeStatusOut, LikeToggleOut
from microblog.security import QuotaLimiter, like_quota
from microblog.services.post_service import get_published_post

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class LikeService:
    def __init__(self, quota: QuotaLimiter | None = None):
        self.quota = quota or like_quota

    def toggle(
        self, db: Session, identity: Identity | None, post_id: uuid.UUID | None
    ) -> LikeToggleOut:
        """Like the post, or unlike it when the caller already does.

        The delete is the existence check: removing a row means the caller
        unliked. Otherwise a like is inserted; losing that insert to a
        concurrent toggle leaves the single existing row in place. The count is
        read before commit so it always reflects this toggle.
        """
        user = require_user(identity)
        self.quota.enforce(str(user.id))
        post = get_published_post(db, post_id)

        with transaction(db, "Failed to toggle like"):
            liked = not self._delete_like(db, post.id, user.id)
            if liked:
                insert_ignore(
                    db,
                    Like,
                    {"post_id": post.id, "user_id": user.id},
                    conflict=["post_id", "user_id"],
                )
            like_count = self._count(db, post.id)

        LIKE_TOGGLES.labels("like" if liked else "unlike").inc()
        return LikeToggleOut(liked=liked, like_count=like_count)

    def status(
        self, db: Session, post_id: uuid.UUID, viewer: Identity | None = None
    ) -> LikeStatusOut:
        post = get_published_post(db, post_id)
        user_liked = False
        if viewer is not None:
            user_liked = (
                db.query(Like.id)
                .filter(Like.post_id == post.id, Like.user_id == viewer.id)
                .first()
                is not None
            )
        return LikeStatusOut(like_count=self._count(db, post.id), user_liked=user_liked)

    @staticmethod
    def _delete_like(db: Session, post_id: uuid.UUID, user_id: uuid.UUID) -> int:
        return (
            db.query(Like)
            .filter(Like.post_id == post_id, Like.user_id == user_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def _count(db: Session, post_id: uuid.UUID) -> int:
        return db.query(Like).filter(Like.post_id == post_id).count()


# Singleton instance
like_service = LikeService()
