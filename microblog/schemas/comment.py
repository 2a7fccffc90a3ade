"""Pydantic schemas for comments and moderation."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from microblog.schemas.post import PostSummary


class CommentStatus(str, Enum):
    """Comment moderation status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"


MODERATION_OUTCOMES = frozenset(
    {CommentStatus.APPROVED, CommentStatus.REJECTED, CommentStatus.FLAGGED}
)


class CommentCreate(BaseModel):
    post_id: uuid.UUID | None = None
    author_name: str | None = None
    content: str | None = None


class CommentModerate(BaseModel):
    status: str | None = None


class CommentOut(BaseModel):
    """Comment output schema."""

    id: uuid.UUID
    post_id: uuid.UUID
    user_id: uuid.UUID
    author_name: str
    content: str
    status: CommentStatus
    created_at: datetime
    moderated_at: datetime | None = None
    moderated_by: uuid.UUID | None = None

    class Config:
        from_attributes = True


class CommentQueueItem(CommentOut):
    """Moderation queue entry with the post it belongs to."""

    post: PostSummary | None = None
