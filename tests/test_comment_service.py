"""Tests for comment submission and moderation."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from microblog.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from microblog.models.comment import Comment
from microblog.services.comment_service import CommentService
from microblog.services.notifications import NotificationResult
from microblog.services.post_service import post_service


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.notify_comment_approved.return_value = NotificationResult(ok=True)
    return mock


@pytest.fixture
def service(notifier):
    return CommentService(notifier=notifier)


@pytest.fixture
def published_post(db_session, author):
    post = post_service.create_draft(db_session, author, "Open Thread", "Body", [])
    return post_service.publish(db_session, author, post.id)


def test_submit_creates_pending_comment(db_session, service, reader, published_post):
    comment = service.submit(
        db_session, reader, published_post.id, "  Reader  ", "  Nice post  "
    )

    assert comment.status == "pending"
    assert comment.author_name == "Reader"
    assert comment.content == "Nice post"
    assert comment.user_id == reader.id


def test_submit_requires_identity(db_session, service, published_post):
    with pytest.raises(UnauthorizedError):
        service.submit(db_session, None, published_post.id, "Reader", "Hi")


def test_submit_validates_fields(db_session, service, reader, published_post):
    with pytest.raises(ValidationError) as exc_info:
        service.submit(db_session, reader, published_post.id, "x" * 101, "")
    assert exc_info.value.details == {
        "author_name": ["Author name must be 100 characters or less"],
        "content": ["Comment content is required"],
    }

    with pytest.raises(ValidationError) as exc_info:
        service.submit(db_session, reader, None, "Reader", "Hi")
    assert exc_info.value.details == {"post_id": ["Post ID is required"]}


def test_submit_on_draft_or_missing_post(db_session, service, author, reader):
    draft = post_service.create_draft(db_session, author, "Draft", "Body", [])
    with pytest.raises(NotFoundError):
        service.submit(db_session, reader, draft.id, "Reader", "Hi")
    with pytest.raises(NotFoundError):
        service.submit(db_session, reader, uuid.uuid4(), "Reader", "Hi")
    assert db_session.query(Comment).count() == 0


def test_approve_notifies_author_once(
    db_session, service, notifier, reader, moderator, published_post
):
    comment = service.submit(db_session, reader, published_post.id, "Reader", "Hi")

    moderated = service.moderate(db_session, moderator, comment.id, "approved")
    assert moderated.status == "approved"
    assert moderated.moderated_by == moderator.id
    assert moderated.moderated_at is not None

    with pytest.raises(ForbiddenError, match="already been moderated"):
        service.moderate(db_session, moderator, comment.id, "approved")
    with pytest.raises(ForbiddenError):
        service.moderate(db_session, moderator, comment.id, "rejected")

    notifier.notify_comment_approved.assert_called_once()
    kwargs = notifier.notify_comment_approved.call_args.kwargs
    assert kwargs["to_email"] == "author@example.com"
    assert kwargs["post_title"] == "Open Thread"
    assert kwargs["author_name"] == "Reader"


@pytest.mark.parametrize("outcome", ["rejected", "flagged"])
def test_non_approval_sends_nothing(
    db_session, service, notifier, reader, moderator, published_post, outcome
):
    comment = service.submit(db_session, reader, published_post.id, "Reader", "Hi")
    assert service.moderate(db_session, moderator, comment.id, outcome).status == (
        outcome
    )
    notifier.notify_comment_approved.assert_not_called()


@pytest.mark.parametrize("status", ["pending", "deleted", None])
def test_moderate_rejects_unknown_outcome(
    db_session, service, reader, moderator, published_post, status
):
    comment = service.submit(db_session, reader, published_post.id, "Reader", "Hi")
    with pytest.raises(ValidationError):
        service.moderate(db_session, moderator, comment.id, status)


def test_moderate_missing_comment(db_session, service, moderator):
    with pytest.raises(NotFoundError):
        service.moderate(db_session, moderator, uuid.uuid4(), "approved")


def test_moderate_requires_moderator(
    db_session, service, reader, published_post, monkeypatch
):
    from microblog.config import settings

    comment = service.submit(db_session, reader, published_post.id, "Reader", "Hi")
    with pytest.raises(UnauthorizedError):
        service.moderate(db_session, None, comment.id, "approved")

    monkeypatch.setattr(settings, "restrict_moderation", True)
    with pytest.raises(ForbiddenError, match="Moderator access required"):
        service.moderate(db_session, reader, comment.id, "approved")


def test_notification_failure_does_not_undo_approval(
    db_session, service, notifier, reader, moderator, published_post
):
    notifier.notify_comment_approved.side_effect = RuntimeError("smtp down")
    comment = service.submit(db_session, reader, published_post.id, "Reader", "Hi")

    moderated = service.moderate(db_session, moderator, comment.id, "approved")

    assert moderated.status == "approved"
    db_session.expire_all()
    assert db_session.get(Comment, comment.id).status == "approved"


def test_list_for_post_shows_approved_oldest_first(
    db_session, service, reader, moderator, published_post
):
    first = service.submit(db_session, reader, published_post.id, "A", "first")
    second = service.submit(db_session, reader, published_post.id, "B", "second")
    hidden = service.submit(db_session, reader, published_post.id, "C", "third")
    for comment in (second, first):
        service.moderate(db_session, moderator, comment.id, "approved")

    visible = service.list_for_post(db_session, published_post.id)
    assert [c.id for c in visible] == [first.id, second.id]

    # Moderators may look at other statuses; anonymous viewers may not
    pending = service.list_for_post(db_session, published_post.id, moderator, "pending")
    assert [c.id for c in pending] == [hidden.id]
    assert [c.id for c in service.list_for_post(
        db_session, published_post.id, None, "pending"
    )] == [first.id, second.id]

    with pytest.raises(ValidationError):
        service.list_for_post(db_session, published_post.id, moderator, "bogus")


def test_list_pending_queue(db_session, service, reader, moderator, published_post):
    for n in range(3):
        service.submit(db_session, reader, published_post.id, "R", f"comment {n}")

    page = service.list_pending(db_session, moderator, page=1, per_page=2)
    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.items) == 2
    assert all(c.status == "pending" for c in page.items)

    with pytest.raises(UnauthorizedError):
        service.list_pending(db_session, None)
