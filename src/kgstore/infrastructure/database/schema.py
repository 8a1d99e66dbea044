"""SQLAlchemy Core table definitions for the relational graph store.

Three graph tables plus a key/value ``metadata`` table. Observations and
relations cascade on entity deletion; relation triples are unique.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    text,
)

metadata = MetaData()

entities = Table(
    "entities",
    metadata,
    Column("name", Text, primary_key=True),
    Column("entity_type", Text, nullable=False),
    Column("created_at", Integer, server_default=text("(strftime('%s', 'now'))")),
)

observations = Table(
    "observations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "entity_name",
        Text,
        ForeignKey("entities.name", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("content", Text, nullable=False),
    sqlite_autoincrement=True,
)

relations = Table(
    "relations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "from_entity",
        Text,
        ForeignKey("entities.name", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "to_entity",
        Text,
        ForeignKey("entities.name", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("relation_type", Text, nullable=False),
    UniqueConstraint("from_entity", "to_entity", "relation_type"),
    sqlite_autoincrement=True,
)

# Named ``store_metadata`` so it does not shadow the SQLAlchemy MetaData above.
store_metadata = Table(
    "metadata",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text),
)

# ---------------------------------------------------------------------------
# Indexes for the join/cascade columns
# ---------------------------------------------------------------------------

Index("idx_obs_entity", observations.c.entity_name)
Index("idx_relations_from", relations.c.from_entity)
Index("idx_relations_to", relations.c.to_entity)

# Keys stored in the ``metadata`` table.
MARKER_TYPE_KEY = "type"
MARKER_SOURCE_KEY = "source"
MIGRATED_KEY = "jsonl_migrated"
