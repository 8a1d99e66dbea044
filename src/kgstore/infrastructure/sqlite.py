"""Relational backend: the graph in a normalized SQLite store.

Each backend instance moves through a small state machine::

    UNINITIALIZED --first operation--> READY --close()--> CLOSED

The first operation creates the schema (create-if-absent) and writes
the identity tags. Every save is one all-or-nothing transaction that
clears and repopulates the three graph tables, so a failed save leaves
the previously stored graph untouched.

Reads are ordered by insertion (entity ``rowid``, observation and
relation ``id``), so a load returns the graph in the order it was saved.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import delete, insert, literal_column, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from kgstore.domain.errors import ConstraintViolationError, StorageClosedError
from kgstore.domain.graph import Entity, KnowledgeGraph, Relation, ensure_unique_entities
from kgstore.infrastructure.database.engine import create_db_engine, init_schema
from kgstore.infrastructure.database.schema import (
    MIGRATED_KEY,
    entities,
    observations,
    relations,
    store_metadata,
)
from kgstore.infrastructure.jsonl import JSONLStorage

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class StoreState(Enum):
    """Lifecycle of a :class:`SQLiteStorage` instance."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class MigrationReport(BaseModel):
    """Outcome of :meth:`SQLiteStorage.migrate_from_jsonl`.

    ``migrated`` is False when the store had already been migrated and
    the call changed nothing.
    """

    model_config = {"frozen": True}

    migrated: bool
    source: str
    entities: int = 0
    relations: int = 0


class SQLiteStorage:
    """Graph storage backed by a single SQLite database file.

    Construction performs no I/O. Use :meth:`close` (or a ``with`` block)
    to release the engine; the instance must not be used afterwards.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._engine = create_db_engine(self.db_path)
        self._state = StoreState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"SQLiteStorage({str(self.db_path)!r})"

    def __enter__(self) -> SQLiteStorage:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (initialized on access)."""
        self._ensure_ready()
        return self._engine

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _ensure_ready(self) -> None:
        if self._state is StoreState.READY:
            return
        if self._state is StoreState.CLOSED:
            msg = f"{self!r} has been closed"
            raise StorageClosedError(msg)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        init_schema(self._engine)
        self._state = StoreState.READY
        logger.debug("Initialized graph store at %s", self.db_path)

    def close(self) -> None:
        """Dispose of the engine. Calling it again is a no-op."""
        if self._state is StoreState.CLOSED:
            return
        self._engine.dispose()
        self._state = StoreState.CLOSED

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load_graph(self) -> KnowledgeGraph:
        """Read the whole graph in insertion order."""
        self._ensure_ready()
        with self._engine.begin() as conn:
            entity_rows = conn.execute(
                select(entities.c.name, entities.c.entity_type).order_by(
                    literal_column("entities.rowid")
                )
            ).all()
            obs_rows = conn.execute(
                select(observations.c.entity_name, observations.c.content).order_by(
                    observations.c.id
                )
            ).all()
            rel_rows = conn.execute(
                select(
                    relations.c.from_entity,
                    relations.c.to_entity,
                    relations.c.relation_type,
                ).order_by(relations.c.id)
            ).all()

        obs_by_entity: defaultdict[str, list[str]] = defaultdict(list)
        for row in obs_rows:
            obs_by_entity[row.entity_name].append(row.content)

        return KnowledgeGraph(
            entities=[
                Entity(
                    name=row.name,
                    entity_type=row.entity_type,
                    observations=obs_by_entity.get(row.name, []),
                )
                for row in entity_rows
            ],
            relations=[
                Relation(
                    from_=row.from_entity,
                    to=row.to_entity,
                    relation_type=row.relation_type,
                )
                for row in rel_rows
            ],
        )

    def save_graph(self, graph: KnowledgeGraph) -> None:
        """Replace the stored graph with *graph* in a single transaction.

        Duplicate relation triples are collapsed silently. Relations whose
        endpoints name no entity violate the foreign keys and abort the
        whole save.

        Raises:
            DuplicateEntityError: If *graph* repeats an entity name.
            ConstraintViolationError: If the store rejects a row.
        """
        self._write(graph)

    def _write(self, graph: KnowledgeGraph, *, mark_migrated: bool = False) -> None:
        ensure_unique_entities(graph)
        self._ensure_ready()
        try:
            with self._engine.begin() as conn:
                self._replace_contents(conn, graph)
                if mark_migrated:
                    conn.execute(insert(store_metadata).values(key=MIGRATED_KEY, value="1"))
        except IntegrityError as exc:
            msg = f"Graph rejected by {self.db_path}: {exc.orig}"
            raise ConstraintViolationError(msg) from exc
        logger.debug(
            "Saved %d entities and %d relations to %s",
            len(graph.entities),
            len(graph.relations),
            self.db_path,
        )

    @staticmethod
    def _replace_contents(conn: Connection, graph: KnowledgeGraph) -> None:
        # Children first so no delete trips a foreign key.
        conn.execute(delete(relations))
        conn.execute(delete(observations))
        conn.execute(delete(entities))

        entity_rows = [{"name": e.name, "entity_type": e.entity_type} for e in graph.entities]
        obs_rows = [
            {"entity_name": e.name, "content": content}
            for e in graph.entities
            for content in e.observations
        ]
        rel_rows = [
            {"from_entity": r.from_, "to_entity": r.to, "relation_type": r.relation_type}
            for r in graph.relations
        ]

        # An empty parameter list would run a single default-values INSERT.
        if entity_rows:
            conn.execute(insert(entities), entity_rows)
        if obs_rows:
            conn.execute(insert(observations), obs_rows)
        if rel_rows:
            conn.execute(
                sqlite_insert(relations).on_conflict_do_nothing(
                    index_elements=[
                        relations.c.from_entity,
                        relations.c.to_entity,
                        relations.c.relation_type,
                    ]
                ),
                rel_rows,
            )

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    def is_migrated(self) -> bool:
        """Whether a text-format migration has already completed."""
        self._ensure_ready()
        with self._engine.connect() as conn:
            row = conn.execute(
                select(store_metadata.c.value).where(store_metadata.c.key == MIGRATED_KEY)
            ).first()
        return row is not None

    def migrate_from_jsonl(self, jsonl_path: Path | str) -> MigrationReport:
        """Copy the graph in *jsonl_path* into this store, once.

        A no-op if the migration flag is already set. A missing source
        file migrates an empty graph and still sets the flag. The write
        follows the :meth:`save_graph` rules (atomic, relations deduplicated)
        and the flag is set in the same transaction, so if loading or
        saving fails the flag stays unset.
        """
        source = str(jsonl_path)
        if self.is_migrated():
            logger.debug("Store %s already migrated, skipping %s", self.db_path, source)
            return MigrationReport(migrated=False, source=source)

        graph = JSONLStorage(jsonl_path).load_graph()
        self._write(graph, mark_migrated=True)

        logger.info(
            "Migrated %d entities and %d relations from %s to SQLite",
            len(graph.entities),
            len(graph.relations),
            source,
        )
        return MigrationReport(
            migrated=True,
            source=source,
            entities=len(graph.entities),
            relations=len(graph.relations),
        )
