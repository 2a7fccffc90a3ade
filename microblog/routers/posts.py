"""Post API: drafts, publishing, feed and like status."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from microblog.auth import get_identity
from microblog.config import settings
from microblog.database import get_db
from microblog.identity import Identity
from microblog.schemas.common import envelope
from microblog.schemas.post import PostCreate, PostOut, PostUpdate
from microblog.security import limiter
from microblog.services.feed_service import feed_service
from microblog.services.like_service import like_service
from microblog.services.post_service import post_service

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post("", name="create_post")
def create_post(
    payload: PostCreate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Create a draft post."""
    post = post_service.create_draft(
        db, identity, payload.title, payload.content, payload.tags
    )
    return envelope(PostOut.model_validate(post))


@router.get("", name="list_posts")
@limiter.limit("60/minute")
def list_posts(
    request: Request,
    page: int = Query(1),
    per_page: int = Query(settings.default_per_page),
    tag: str | None = Query(None),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    status: str | None = Query(None),
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Published feed, or the caller's own posts when ``status`` is given."""
    if status is not None:
        result = feed_service.list_by_author(db, identity, status, page, per_page)
    else:
        result = feed_service.list_published(
            db, page, per_page, tag=tag, date_from=date_from, date_to=date_to
        )
    return envelope([PostOut.model_validate(p) for p in result.items], result.meta)


@router.get("/{post_id}", name="get_post")
@limiter.limit("60/minute")
def get_post(
    request: Request,
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    post = post_service.get_for_viewer(db, post_id, identity)
    return envelope(PostOut.model_validate(post))


@router.patch("/{post_id}", name="update_post")
def update_post(
    post_id: uuid.UUID,
    payload: PostUpdate,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Update a draft; only the fields present in the body change."""
    changes = payload.model_dump(exclude_unset=True)
    post = post_service.update_draft(db, identity, post_id, **changes)
    return envelope(PostOut.model_validate(post))


@router.delete("/{post_id}", name="delete_post")
def delete_post(
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    post_service.delete_draft(db, identity, post_id)
    return envelope({"message": "Post deleted successfully"})


@router.post("/{post_id}/publish", name="publish_post")
def publish_post(
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    post = post_service.publish(db, identity, post_id)
    return envelope(PostOut.model_validate(post))


@router.get("/{post_id}/likes", name="post_likes")
@limiter.limit("60/minute")
def post_likes(
    request: Request,
    post_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Like count and whether the caller likes the post."""
    return envelope(like_service.status(db, post_id, identity))
