"""Database engine setup for SQLite with WAL mode.

WAL journaling lets external readers keep reading while a save
transaction is in flight. Foreign keys are off by default in SQLite,
so every new connection switches them on; the cascade rules in
:mod:`schema` depend on it.

SQLAlchemy Core (not ORM): every operation reads or rewrites the whole
graph, so sessions and identity maps have nothing to track.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from kgstore.domain.graph import FILE_MARKER
from kgstore.infrastructure.database.schema import (
    MARKER_SOURCE_KEY,
    MARKER_TYPE_KEY,
    metadata,
    store_metadata,
)


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    No connection is opened here; SQLAlchemy connects on first use.
    """
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_schema(engine: Engine) -> None:
    """Create all tables and indexes if absent and write the identity tags.

    Idempotent: safe to call on an existing store.
    """
    metadata.create_all(engine)

    stmt = sqlite_insert(store_metadata).values(
        [
            {"key": MARKER_TYPE_KEY, "value": FILE_MARKER.type},
            {"key": MARKER_SOURCE_KEY, "value": FILE_MARKER.source},
        ]
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[store_metadata.c.key],
        set_={"value": stmt.excluded.value},
    )
    with engine.begin() as conn:
        conn.execute(stmt)
