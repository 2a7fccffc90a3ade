"""Test fixtures for API and database."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

TESTS_ROOT = Path(__file__).parent

# Set env *before* importing microblog modules so the app doesn't try to open
# the default database path or share quota state across tests.
os.environ.setdefault("DATABASE_URL", "sqlite:///test_app.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAIL_ENABLED", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from microblog.auth import get_identity  # noqa: E402
from microblog.database import Base  # noqa: E402
from microblog.database import get_db as db_dependency  # noqa: E402
from microblog.db_events import attach_sqlite_listeners  # noqa: E402
from microblog.identity import Identity  # noqa: E402
from microblog.main import app  # noqa: E402
from microblog.models import comment, like, post  # noqa: E402,F401
from microblog.models.user import User  # noqa: E402
from microblog.security.rate_limit import limiter  # noqa: E402

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False

TEST_DB_PATH = Path("test_app.db")
TESTING_SESSION_FACTORY: sessionmaker | None = None


class Caller:
    """Mutable identity seen by routes through the get_identity override."""

    identity: Identity | None = None


@pytest.fixture(scope="session")
def client():
    global TESTING_SESSION_FACTORY
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    engine = create_engine(
        f"sqlite:///{TEST_DB_PATH}",
        connect_args={"check_same_thread": False},
    )
    attach_sqlite_listeners(engine)
    TESTING_SESSION_FACTORY = sessionmaker(
        bind=engine, autocommit=False, autoflush=False
    )
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TESTING_SESSION_FACTORY()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[db_dependency] = override_get_db
    app.dependency_overrides[get_identity] = lambda: Caller.identity

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(db_dependency, None)
    app.dependency_overrides.pop(get_identity, None)
    engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture
def db_session(client):
    if TESTING_SESSION_FACTORY is None:
        raise RuntimeError("Session factory not initialized")
    session = TESTING_SESSION_FACTORY()
    try:
        yield session
    finally:
        # Ensure database state is isolated between tests
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()
        Caller.identity = None


@pytest.fixture
def session_factory(db_session):
    return TESTING_SESSION_FACTORY


def make_user(db, email: str, is_superuser: bool = False) -> Identity:
    user = User(
        id=uuid.uuid4(),
        email=email,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=is_superuser,
        is_verified=True,
        display_name=email.split("@")[0],
    )
    db.add(user)
    db.commit()
    return Identity.from_user(user)


@pytest.fixture
def author(db_session) -> Identity:
    return make_user(db_session, "author@example.com")


@pytest.fixture
def reader(db_session) -> Identity:
    return make_user(db_session, "reader@example.com")


@pytest.fixture
def moderator(db_session) -> Identity:
    return make_user(db_session, "mod@example.com", is_superuser=True)


@pytest.fixture
def login():
    """Act as the given identity (or anonymously) for API calls."""

    def _login(identity: Identity | None) -> None:
        Caller.identity = identity

    return _login
