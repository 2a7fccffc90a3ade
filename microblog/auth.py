"""Account handling and caller resolution.

Browsers authenticate with the session cookie, API clients with a bearer
token; both carry the same JWT. Routes never see the ORM user: they receive
an ``Identity`` (or ``None`` for anonymous callers) from ``get_identity``.
"""

import logging
import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, InvalidPasswordException, UUIDIDMixin
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    CookieTransport,
    JWTStrategy,
)
from fastapi_users.manager import BaseUserManager
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.config import settings
from microblog.database_async import get_async_session
from microblog.identity import Identity
from microblog.models.user import User
from microblog.schemas.user import UserCreate

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
JWT_AUDIENCE = ["microblog:auth"]


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.secret_key
    verification_token_secret = settings.secret_key

    async def validate_password(self, password: str, user: UserCreate | User) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if user.email.split("@")[0].lower() in password.lower():
            raise InvalidPasswordException(
                reason="Password should not contain the email address"
            )

    async def on_after_register(
        self, user: User, request: Request | None = None
    ) -> None:
        if not user.display_name:
            await self.user_db.update(user, {"display_name": user.email.split("@")[0]})
        logger.info("User registered", extra={"user_id": str(user.id)})


async def get_user_db(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[SQLAlchemyUserDatabase[User, uuid.UUID]]:
    yield SQLAlchemyUserDatabase(session, User)


async def get_user_manager(
    user_db: SQLAlchemyUserDatabase[User, uuid.UUID] = Depends(get_user_db),
) -> AsyncGenerator[UserManager]:
    yield UserManager(user_db)


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(
        secret=settings.secret_key,
        lifetime_seconds=settings.jwt_lifetime_seconds,
        token_audience=JWT_AUDIENCE,
    )


cookie_backend = AuthenticationBackend(
    name="cookie",
    transport=CookieTransport(
        cookie_name=settings.auth_cookie_name,
        cookie_secure=settings.is_production,
        cookie_max_age=settings.jwt_lifetime_seconds,
        cookie_httponly=True,
    ),
    get_strategy=get_jwt_strategy,
)

bearer_backend = AuthenticationBackend(
    name="bearer",
    transport=BearerTransport(tokenUrl="api/auth/jwt/login"),
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [cookie_backend, bearer_backend],
)

optional_user = fastapi_users.current_user(active=True, optional=True)


async def get_identity(user: User | None = Depends(optional_user)) -> Identity | None:
    if user is None:
        return None
    return Identity.from_user(user)
