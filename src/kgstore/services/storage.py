"""StorageService: the operations the CLI runs against the configured store.

Storage-layer exceptions never escape this module: each operation maps
them to a :class:`ServiceError` code so the CLI can report them and
exit non-zero.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from kgstore.domain.errors import (
    ConstraintViolationError,
    DuplicateEntityError,
    FormatError,
    StorageError,
)
from kgstore.infrastructure.factory import create_storage_backend, sqlite_path_for
from kgstore.infrastructure.jsonl import JSONLStorage
from kgstore.infrastructure.sqlite import SQLiteStorage
from kgstore.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from kgstore.config.settings import KgSettings

logger = logging.getLogger(__name__)


def _error_result(op: str, exc: Exception) -> ServiceResult:
    if isinstance(exc, DuplicateEntityError):
        code = "DUPLICATE_ENTITY"
    elif isinstance(exc, FormatError):
        code = "INVALID_FORMAT"
    elif isinstance(exc, ConstraintViolationError):
        code = "CONSTRAINT_VIOLATION"
    elif isinstance(exc, StorageError):
        code = "STORAGE_ERROR"
    else:
        code = "IO_ERROR"
    return ServiceResult(ok=False, op=op, error=ServiceError(code=code, message=str(exc)))


class StorageService:
    """Operations over the backend selected by :class:`KgSettings`."""

    def __init__(self, settings: KgSettings) -> None:
        self._settings = settings

    @property
    def location(self) -> Path:
        """Where the configured backend keeps its data."""
        path = self._settings.memory_file
        if self._settings.storage_backend == "sqlite":
            return sqlite_path_for(path)
        return path

    def migrate(self, source: Path | None = None) -> ServiceResult:
        """Copy the text-format graph into the SQLite store beside it, once."""
        op = "migrate"
        source = source or self._settings.memory_file
        store = SQLiteStorage(sqlite_path_for(self._settings.memory_file))
        try:
            report = store.migrate_from_jsonl(source)
        except (StorageError, OSError) as exc:
            logger.debug("Migration from %s failed", source, exc_info=True)
            return _error_result(op, exc)
        finally:
            store.close()

        warnings: list[str] = []
        if report.migrated and not source.exists():
            warnings.append(f"Source {source} not found; an empty graph was migrated")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "migrated": report.migrated,
                "source": report.source,
                "target": str(store.db_path),
                "entities": report.entities,
                "relations": report.relations,
            },
            warnings=warnings,
        )

    def stats(self) -> ServiceResult:
        """Load the whole graph and report its size."""
        op = "stats"
        backend = create_storage_backend(
            self._settings.memory_file, self._settings.storage_backend
        )
        try:
            graph = backend.load_graph()
        except (StorageError, OSError) as exc:
            return _error_result(op, exc)
        finally:
            backend.close()

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "backend": str(self._settings.storage_backend),
                "location": str(self.location),
                "entities": len(graph.entities),
                "observations": sum(len(e.observations) for e in graph.entities),
                "relations": len(graph.relations),
            },
        )

    def export(self, output: Path) -> ServiceResult:
        """Write the configured backend's graph to a text-format file.

        An existing *output* must already carry the safety marker; an
        unrelated file is never overwritten.
        """
        op = "export"
        target = JSONLStorage(output)
        backend = create_storage_backend(
            self._settings.memory_file, self._settings.storage_backend
        )
        try:
            target.load_graph()
            graph = backend.load_graph()
            target.save_graph(graph)
        except (StorageError, OSError) as exc:
            return _error_result(op, exc)
        finally:
            backend.close()

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "output": str(output),
                "entities": len(graph.entities),
                "relations": len(graph.relations),
            },
        )
