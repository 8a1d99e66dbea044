"""Backend selection: map a storage kind and a text-format path to a backend.

Pure construction: nothing here touches the filesystem or the database.
"""

from __future__ import annotations

from pathlib import Path

from kgstore.domain.types import StorageKind
from kgstore.infrastructure.backend import StorageBackend
from kgstore.infrastructure.jsonl import JSONLStorage
from kgstore.infrastructure.sqlite import SQLiteStorage

JSONL_SUFFIX = ".jsonl"
SQLITE_SUFFIX = ".db"


def sqlite_path_for(path: Path | str) -> Path:
    """Derive the SQLite file location from a text-format path.

    ``memory.jsonl`` becomes ``memory.db``. Any other name gets ``.db``
    appended so the two backends never share a file.
    """
    path = Path(path)
    if path.suffix == JSONL_SUFFIX:
        return path.with_suffix(SQLITE_SUFFIX)
    return path.with_name(path.name + SQLITE_SUFFIX)


def create_storage_backend(
    path: Path | str,
    kind: StorageKind = StorageKind.JSONL,
) -> StorageBackend:
    """Construct the backend for *kind* rooted at text-format *path*."""
    if kind == StorageKind.SQLITE:
        return SQLiteStorage(sqlite_path_for(path))
    return JSONLStorage(path)
