"""Comment API: submission, listing and moderation."""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from microblog.auth import get_identity
from microblog.config import settings
from microblog.database import get_db
from microblog.errors import ValidationError
from microblog.identity import Identity
from microblog.schemas.comment import (
    CommentCreate,
    CommentModerate,
    CommentOut,
    CommentQueueItem,
)
from microblog.schemas.common import envelope
from microblog.security import limiter
from microblog.services.comment_service import comment_service

router = APIRouter(prefix="/api", tags=["comments"])


@router.post("/comments", name="create_comment")
def create_comment(
    payload: CommentCreate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Submit a comment; it stays pending until moderated."""
    comment = comment_service.submit(
        db, identity, payload.post_id, payload.author_name, payload.content
    )
    return envelope(CommentOut.model_validate(comment))


@router.get("/comments", name="list_comments")
@limiter.limit("60/minute")
def list_comments(
    request: Request,
    post_id: uuid.UUID | None = Query(None),
    status: str | None = Query(None),
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    if post_id is None:
        raise ValidationError.for_field(
            "post_id", "post_id query parameter is required"
        )
    comments = comment_service.list_for_post(db, post_id, identity, status)
    return envelope([CommentOut.model_validate(c) for c in comments])


@router.patch("/comments/{comment_id}/moderate", name="moderate_comment")
def moderate_comment(
    comment_id: uuid.UUID,
    payload: CommentModerate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    comment = comment_service.moderate(db, identity, comment_id, payload.status)
    return envelope(CommentOut.model_validate(comment))


@router.get("/moderation/comments", name="moderation_queue")
def moderation_queue(
    status: str = Query("pending"),
    page: int = Query(1),
    per_page: int = Query(settings.moderation_per_page),
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Comments awaiting a decision, newest first."""
    result = comment_service.list_pending(db, identity, page, per_page, status)
    return envelope(
        [CommentQueueItem.model_validate(c) for c in result.items], result.meta
    )
