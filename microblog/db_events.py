"""Engine event helpers for SQLite connections."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine


def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite ships with foreign key enforcement off; cascades rely on it."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def attach_sqlite_listeners(engine: Engine) -> None:
    """Attach connection listeners for SQLite backends."""
    if engine.dialect.name != "sqlite":
        return
    event.listen(engine, "connect", _enable_foreign_keys)
