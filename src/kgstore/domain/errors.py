"""Error taxonomy for the storage layer.

A missing text file is not an error (it loads as an empty graph).
``OSError`` from the filesystem is propagated unchanged and is not
wrapped here. Nothing in the storage layer retries.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all storage-layer failures."""


class FormatError(StorageError, ValueError):
    """A text-format file has a missing/invalid safety marker or a malformed record."""


class DuplicateEntityError(StorageError, ValueError):
    """A graph passed to ``save_graph`` repeats one or more entity names."""

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(f"Duplicate entity names: {', '.join(names)}")


class ConstraintViolationError(StorageError):
    """The relational store rejected a write (foreign key or uniqueness failure)."""


class StorageClosedError(StorageError):
    """An operation was attempted on a backend after ``close()``."""
