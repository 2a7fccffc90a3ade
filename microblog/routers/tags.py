from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from microblog.config import settings
from microblog.database import get_db
from microblog.schemas.common import envelope
from microblog.schemas.post import PostOut, TagOut
from microblog.security import limiter
from microblog.services.feed_service import feed_service

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", name="list_tags")
@limiter.limit("60/minute")
def list_tags(request: Request, db: Session = Depends(get_db)):
    """All tags with published post counts."""
    tags = feed_service.list_tags(db)
    return envelope(tags, {"total": len(tags)})


@router.get("/{tag}/posts", name="tag_posts")
@limiter.limit("60/minute")
def tag_posts(
    request: Request,
    tag: str,
    page: int = Query(1),
    per_page: int = Query(settings.default_per_page),
    db: Session = Depends(get_db),
):
    """Published posts carrying a tag."""
    tag_row, result = feed_service.list_by_tag(db, tag, page, per_page)
    return envelope(
        {
            "tag": TagOut.model_validate(tag_row),
            "posts": [PostOut.model_validate(p) for p in result.items],
        },
        result.meta,
    )
