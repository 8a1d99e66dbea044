"""Storage interface consumed by the rest of the system.

Every call operates on the complete graph: there are no partial reads
and no incremental writes. Callers serialize load/mutate/save cycles
themselves; nothing here guards against an interleaving writer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kgstore.domain.graph import KnowledgeGraph


@runtime_checkable
class StorageBackend(Protocol):
    """Load-the-whole-graph / save-the-whole-graph contract."""

    def load_graph(self) -> KnowledgeGraph:
        """Return a freshly built graph from durable storage."""
        ...

    def save_graph(self, graph: KnowledgeGraph) -> None:
        """Replace everything stored with *graph* (total overwrite, no merge)."""
        ...

    def close(self) -> None:
        """Release any underlying handle. The backend is unusable afterwards."""
        ...
