"""SQLite engine and schema for the relational backend via SQLAlchemy Core."""

from kgstore.infrastructure.database.engine import create_db_engine, init_schema
from kgstore.infrastructure.database.schema import (
    entities,
    metadata,
    observations,
    relations,
    store_metadata,
)

__all__ = [
    "create_db_engine",
    "entities",
    "init_schema",
    "metadata",
    "observations",
    "relations",
    "store_metadata",
]
