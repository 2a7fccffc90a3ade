from __future__ import annotations

import uuid

from pydantic import BaseModel


class LikeToggleRequest(BaseModel):
    post_id: uuid.UUID | None = None


class LikeToggleOut(BaseModel):
    liked: bool
    like_count: int


class LikeStatusOut(BaseModel):
    like_count: int
    user_liked: bool
