"""Storage backend kinds."""

from __future__ import annotations

from enum import StrEnum


class StorageKind(StrEnum):
    """Closed set of storage backends a graph can live in."""

    JSONL = "jsonl"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: str | None) -> StorageKind:
        """Case-insensitive lookup; ``None`` or an unknown value means JSONL."""
        if value is None:
            return cls.JSONL
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.JSONL
