"""Tests for feed, author dashboard and tag directory queries."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from microblog.errors import NotFoundError, UnauthorizedError, ValidationError
from microblog.services.feed_service import feed_service
from microblog.services.post_service import post_service

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _published(db, author, title, tags, days_ago=0):
    post = post_service.create_draft(db, author, title, "Body", tags)
    post = post_service.publish(db, author, post.id)
    post.published_at = NOW - timedelta(days=days_ago)
    db.commit()
    return post


@pytest.fixture
def feed(db_session, author):
    posts = [
        _published(db_session, author, "Newest", ["python", "web"], days_ago=0),
        _published(db_session, author, "Middle", ["python"], days_ago=5),
        _published(db_session, author, "Oldest", ["rust"], days_ago=10),
    ]
    post_service.create_draft(db_session, author, "Unfinished", "Body", ["python"])
    return posts


def test_list_published_newest_first(db_session, feed):
    page = feed_service.list_published(db_session)

    assert [p.title for p in page.items] == ["Newest", "Middle", "Oldest"]
    assert page.total == 3
    assert page.meta.total_pages == 1


def test_list_published_paginates(db_session, feed):
    page = feed_service.list_published(db_session, page=2, per_page=2)

    assert [p.title for p in page.items] == ["Oldest"]
    assert page.meta.model_dump() == {
        "page": 2,
        "per_page": 2,
        "total": 3,
        "total_pages": 2,
    }


def test_page_past_the_end_is_empty(db_session, feed):
    page = feed_service.list_published(db_session, page=9, per_page=2)
    assert page.items == []
    assert page.total == 3


def test_per_page_is_capped(db_session, feed):
    assert feed_service.list_published(db_session, per_page=500).per_page == 50


@pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (-1, -1)])
def test_invalid_paging(db_session, page, per_page):
    with pytest.raises(ValidationError):
        feed_service.list_published(db_session, page=page, per_page=per_page)


def test_empty_feed(db_session):
    page = feed_service.list_published(db_session)
    assert page.items == []
    assert page.total_pages == 0


def test_filter_by_tag_any_spelling(db_session, feed):
    page = feed_service.list_published(db_session, tag="Python")
    assert [p.title for p in page.items] == ["Newest", "Middle"]


def test_filter_by_date_range(db_session, feed):
    page = feed_service.list_published(
        db_session,
        date_from=NOW - timedelta(days=6),
        date_to=NOW - timedelta(days=1),
    )
    assert [p.title for p in page.items] == ["Middle"]


def test_list_by_author(db_session, author, reader, feed):
    drafts = feed_service.list_by_author(db_session, author, "draft")
    assert [p.title for p in drafts.items] == ["Unfinished"]

    published = feed_service.list_by_author(db_session, author, "published")
    assert published.total == 3

    assert feed_service.list_by_author(db_session, reader, "draft").total == 0


def test_list_by_author_requires_identity(db_session):
    with pytest.raises(UnauthorizedError):
        feed_service.list_by_author(db_session, None, "draft")


def test_list_by_author_rejects_unknown_status(db_session, author):
    with pytest.raises(ValidationError):
        feed_service.list_by_author(db_session, author, "archived")


def test_list_tags_counts_published_posts_only(db_session, feed):
    counts = {t.name: t.post_count for t in feed_service.list_tags(db_session)}
    assert counts == {"python": 2, "web": 1, "rust": 1}

    names = [t.name for t in feed_service.list_tags(db_session)]
    assert names[0] == "python"


def test_list_by_tag(db_session, feed):
    tag, page = feed_service.list_by_tag(db_session, "RUST")
    assert tag.name == "rust"
    assert [p.title for p in page.items] == ["Oldest"]

    with pytest.raises(NotFoundError):
        feed_service.list_by_tag(db_session, "haskell")


def test_date_range_bounds_are_inclusive(db_session, feed):
    oldest = NOW - timedelta(days=10)
    newest = NOW

    page = feed_service.list_published(db_session, date_from=oldest, date_to=newest)
    assert [p.title for p in page.items] == ["Newest", "Middle", "Oldest"]

    at_edge = feed_service.list_published(db_session, date_from=NOW, date_to=NOW)
    assert [p.title for p in at_edge.items] == ["Newest"]
