"""Pydantic schemas for posts and tags."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class PostStatus(str, Enum):
    """Post status."""

    DRAFT = "draft"
    PUBLISHED = "published"


class PostCreate(BaseModel):
    """Schema for creating a draft.

    Field rules are checked by the service so failures come back as
    field-level VALIDATION_ERROR details.
    """

    title: str | None = None
    content: str | None = None
    tags: list[str] = Field(default_factory=list)


class PostUpdate(BaseModel):
    """Schema for updating a draft; omitted fields are left untouched."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


class PostOut(BaseModel):
    """Post output schema."""

    id: uuid.UUID
    author_id: uuid.UUID
    title: str
    slug: str
    content: str
    status: PostStatus
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None

    class Config:
        from_attributes = True


class PostSummary(BaseModel):
    id: uuid.UUID
    title: str
    slug: str

    class Config:
        from_attributes = True


class TagOut(BaseModel):
    name: str
    display_name: str

    class Config:
        from_attributes = True


class TagCount(TagOut):
    post_count: int
