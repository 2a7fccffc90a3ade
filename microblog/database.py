"""Synchronous SQLAlchemy session helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from microblog.config import settings
from microblog.db_events import attach_sqlite_listeners
from microblog.errors import InternalError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base class for ORM models."""


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.db_echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def _ensure_sqlite_dir(url: str) -> None:
    if url.startswith("sqlite:///") and ":memory:" not in url:
        Path(url.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)


_database_url = settings.resolved_database_url
_ensure_sqlite_dir(_database_url)

engine: Engine = create_engine(_database_url, **_engine_kwargs(_database_url))
attach_sqlite_listeners(engine)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Iterator[Session]:
    """Yield a scoped session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def insert_ignore(
    db: Session, model: type[Base], values: dict[str, Any], conflict: list[str]
) -> int:
    """Insert a row unless it violates the unique key ``conflict``.

    Returns the number of inserted rows (0 when the row already existed).
    """
    dialect_insert = _CONFLICT_INSERTS.get(db.get_bind().dialect.name)
    if dialect_insert is not None:
        stmt = dialect_insert(model).values(**values)
        stmt = stmt.on_conflict_do_nothing(index_elements=conflict)
        return db.execute(stmt).rowcount

    try:
        with db.begin_nested():
            db.execute(insert(model).values(**values))
    except IntegrityError:
        return 0
    return 1


@contextmanager
def transaction(db: Session, failure: str) -> Iterator[None]:
    """Commit the work done in the block as one unit.

    Store failures are rolled back, logged with their cause and re-raised as
    InternalError carrying only ``failure``.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(failure)
        raise InternalError(failure) from exc
