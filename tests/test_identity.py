"""Tests for caller identity, moderation capability and account rules."""

from __future__ import annotations

import asyncio
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi_users import InvalidPasswordException

from microblog.auth import UserManager
from microblog.config import settings
from microblog.errors import UnauthorizedError
from microblog.identity import Identity, is_moderator, require_user
from microblog.schemas.user import UserCreate


def test_require_user():
    identity = Identity(id=uuid.uuid4())
    assert require_user(identity) is identity
    with pytest.raises(UnauthorizedError):
        require_user(None)


def test_any_user_moderates_by_default():
    assert is_moderator(Identity(id=uuid.uuid4()))
    assert not is_moderator(None)


def test_restricted_moderation_needs_superuser(monkeypatch):
    monkeypatch.setattr(settings, "restrict_moderation", True)
    assert not is_moderator(Identity(id=uuid.uuid4()))
    assert is_moderator(Identity(id=uuid.uuid4(), is_superuser=True))


@pytest.mark.parametrize(
    "password,reason",
    [
        ("short", "at least 8"),
        ("my-jane-password", "email address"),
    ],
)
def test_password_policy(password, reason):
    manager = UserManager(MagicMock())
    user = UserCreate(email="jane@example.com", password=password)
    with pytest.raises(InvalidPasswordException) as exc_info:
        asyncio.run(manager.validate_password(password, user))
    assert reason in exc_info.value.reason


def test_password_policy_accepts_reasonable_password():
    manager = UserManager(MagicMock())
    user = UserCreate(email="jane@example.com", password="correct horse")
    asyncio.run(manager.validate_password("correct horse", user))
