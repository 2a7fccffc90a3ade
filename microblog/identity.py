"""Caller identity passed explicitly into every service operation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from microblog.config import settings
from microblog.errors import UnauthorizedError

if TYPE_CHECKING:
    from microblog.models.user import User


@dataclass(frozen=True, slots=True)
class Identity:
    id: uuid.UUID
    email: str | None = None
    is_superuser: bool = False

    @classmethod
    def from_user(cls, user: User) -> Identity:
        return cls(id=user.id, email=user.email, is_superuser=user.is_superuser)


def require_user(identity: Identity | None) -> Identity:
    """Return the identity or raise UnauthorizedError for anonymous callers."""
    if identity is None:
        raise UnauthorizedError()
    return identity


def is_moderator(identity: Identity | None) -> bool:
    """Capability check for the moderation queue.

    Any authenticated user qualifies unless ``restrict_moderation`` is set, in
    which case only superusers do.
    """
    if identity is None:
        return False
    if settings.restrict_moderation:
        return identity.is_superuser
    return True
