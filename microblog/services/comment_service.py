"""Comment submission and moderation."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from microblog.database import transaction
from microblog.errors import ForbiddenError, NotFoundError, ValidationError
from microblog.identity import Identity, is_moderator, require_user
from microblog.models.comment import Comment
from microblog.models.post import utcnow
from microblog.models.user import User
from microblog.observability.metrics import COMMENTS_MODERATED, NOTIFICATION_FAILURES
from microblog.schemas.comment import MODERATION_OUTCOMES, CommentStatus
from microblog.security import QuotaLimiter, comment_quota
from microblog.services.notifications import CommentNotifier, comment_notifier
from microblog.services.pagination import Page, paginate
from microblog.services.post_service import get_published_post
from microblog.services.validation import validate_comment_fields

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

INVALID_STATUS = "Invalid status. Must be: approved, rejected, or flagged"


def _parse_status(value: str | None) -> CommentStatus:
    try:
        return CommentStatus(value)
    except ValueError:
        raise ValidationError.for_field(
            "status", f"Unknown comment status: {value}"
        ) from None


class CommentService:
    """Service for the pending -> approved/rejected/flagged comment lifecycle."""

    def __init__(
        self,
        quota: QuotaLimiter | None = None,
        notifier: CommentNotifier | None = None,
    ):
        self.quota = quota or comment_quota
        self.notifier = notifier or comment_notifier

    def submit(
        self,
        db: Session,
        identity: Identity | None,
        post_id: uuid.UUID | None,
        author_name: str | None,
        content: str | None,
    ) -> Comment:
        """Queue a comment on a published post for moderation."""
        user = require_user(identity)
        self.quota.enforce(str(user.id))

        errors = validate_comment_fields(author_name, content)
        if post_id is None:
            errors["post_id"] = ["Post ID is required"]
        if errors:
            raise ValidationError("Validation failed", errors)

        post = get_published_post(db, post_id)
        comment = Comment(
            post_id=post.id,
            user_id=user.id,
            author_name=author_name.strip(),
            content=content.strip(),
            status=CommentStatus.PENDING.value,
        )
        with transaction(db, "Failed to create comment"):
            db.add(comment)
        return comment

    def moderate(
        self,
        db: Session,
        identity: Identity | None,
        comment_id: uuid.UUID,
        new_status: str | None,
    ) -> Comment:
        """Move a pending comment to its final status.

        A comment is moderated once; later attempts raise ForbiddenError, so
        approval notifications go out at most once per comment.
        """
        user = require_user(identity)
        if not is_moderator(user):
            raise ForbiddenError("Moderator access required")
        if new_status not in {s.value for s in MODERATION_OUTCOMES}:
            raise ValidationError.for_field("status", INVALID_STATUS)
        new_status = CommentStatus(new_status).value

        comment = db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")

        with transaction(db, "Failed to update comment"):
            # Only a still-pending row may change status
            updated = (
                db.query(Comment)
                .filter(
                    Comment.id == comment.id,
                    Comment.status == CommentStatus.PENDING.value,
                )
                .update(
                    {
                        Comment.status: new_status,
                        Comment.moderated_at: utcnow(),
                        Comment.moderated_by: user.id,
                    },
                    synchronize_session=False,
                )
            )
        if not updated:
            raise ForbiddenError("Comment has already been moderated")

        db.refresh(comment)
        COMMENTS_MODERATED.labels(new_status).inc()
        if new_status == CommentStatus.APPROVED.value:
            self._notify_author(db, comment)
        return comment

    def list_for_post(
        self,
        db: Session,
        post_id: uuid.UUID,
        viewer: Identity | None = None,
        status: str | None = None,
    ) -> list[Comment]:
        """Comments under a post, oldest first.

        Only moderators may look past the approved comments.
        """
        wanted = CommentStatus.APPROVED
        if status is not None:
            requested = _parse_status(status)
            if is_moderator(viewer):
                wanted = requested
        return (
            db.query(Comment)
            .filter(Comment.post_id == post_id, Comment.status == wanted.value)
            .order_by(Comment.created_at.asc())
            .all()
        )

    def list_pending(
        self,
        db: Session,
        identity: Identity | None,
        page: int = 1,
        per_page: int = 20,
        status: str = CommentStatus.PENDING.value,
    ) -> Page[Comment]:
        """Moderation queue, newest first."""
        user = require_user(identity)
        if not is_moderator(user):
            raise ForbiddenError("Moderator access required")
        wanted = _parse_status(status)
        query = (
            db.query(Comment)
            .filter(Comment.status == wanted.value)
            .order_by(Comment.created_at.desc())
        )
        return paginate(query, page, per_page)

    def _notify_author(self, db: Session, comment: Comment) -> None:
        post = comment.post
        author = db.get(User, post.author_id)
        if author is None or not author.email:
            logger.warning(
                "Post author has no email; skipping notification",
                extra={"post_id": str(post.id)},
            )
            return
        try:
            result = self.notifier.notify_comment_approved(
                to_email=author.email,
                post_title=post.title,
                post_id=str(post.id),
                author_name=comment.author_name,
                content=comment.content,
            )
        except Exception:
            logger.exception(
                "Comment notification raised", extra={"comment_id": str(comment.id)}
            )
            NOTIFICATION_FAILURES.inc()
            return
        if not result.ok:
            NOTIFICATION_FAILURES.inc()


# Singleton instance
comment_service = CommentService()
