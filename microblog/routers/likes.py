from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from microblog.auth import get_identity
from microblog.database import get_db
from microblog.identity import Identity
from microblog.schemas.common import envelope
from microblog.schemas.like import LikeToggleRequest
from microblog.services.like_service import like_service

router = APIRouter(prefix="/api/likes", tags=["likes"])


@router.post("", name="toggle_like")
def toggle_like(
    payload: LikeToggleRequest,
    db: Session = Depends(get_db),
    identity: Identity | None = Depends(get_identity),
):
    """Like or unlike a published post."""
    return envelope(like_service.toggle(db, identity, payload.post_id))
