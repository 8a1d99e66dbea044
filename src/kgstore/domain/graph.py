"""Knowledge graph model: entities and relations under one aggregate.

The serialized field names (``entityType``, ``from``, ``relationType``)
are the wire names used by the text format; Python code uses the
snake_case attribute names. Both are accepted on construction.
"""

from __future__ import annotations

from collections import Counter
from typing import Literal

from pydantic import BaseModel, Field

from kgstore.domain.errors import DuplicateEntityError


class Entity(BaseModel):
    """A named node with a type label and ordered free-text observations."""

    model_config = {"frozen": True, "populate_by_name": True}

    name: str = Field(min_length=1)
    entity_type: str = Field(alias="entityType")
    observations: list[str] = Field(default_factory=list)


class Relation(BaseModel):
    """A directed, typed edge between two entity names."""

    model_config = {"frozen": True, "populate_by_name": True}

    from_: str = Field(alias="from")
    to: str
    relation_type: str = Field(alias="relationType")

    @property
    def key(self) -> tuple[str, str, str]:
        """Identity triple ``(from, to, relationType)``."""
        return (self.from_, self.to, self.relation_type)


class KnowledgeGraph(BaseModel):
    """The full entity + relation collection: the unit of load and save."""

    model_config = {"frozen": True}

    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> KnowledgeGraph:
        return cls()

    def duplicate_entity_names(self) -> list[str]:
        """Entity names that occur more than once, in first-seen order."""
        counts = Counter(e.name for e in self.entities)
        return [name for name, n in counts.items() if n > 1]


class StoreMarker(BaseModel):
    """Leading record that identifies a file as belonging to this system."""

    model_config = {"frozen": True}

    type: Literal["_aim"]
    source: Literal["mcp-knowledge-graph"]


FILE_MARKER = StoreMarker(type="_aim", source="mcp-knowledge-graph")


def ensure_unique_entities(graph: KnowledgeGraph) -> None:
    """Raise :class:`DuplicateEntityError` if *graph* repeats an entity name."""
    duplicates = graph.duplicate_entity_names()
    if duplicates:
        raise DuplicateEntityError(duplicates)
