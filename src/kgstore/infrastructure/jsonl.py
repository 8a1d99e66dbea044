"""Text-format backend: the graph as tagged JSON lines in one file.

Layout::

    {"type":"_aim","source":"mcp-knowledge-graph"}
    {"type":"entity","name":"Alice","entityType":"person","observations":["likes tea"]}
    {"type":"relation","from":"Alice","to":"Bob","relationType":"knows"}

The first line is the safety marker; a file without it is never read
or overwritten as if it were ours. Records with an unknown ``type`` are
skipped so newer writers stay readable. Relations are stored as given,
including ones whose endpoints name no entity.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from kgstore.domain.errors import FormatError
from kgstore.domain.graph import (
    FILE_MARKER,
    Entity,
    KnowledgeGraph,
    Relation,
    StoreMarker,
    ensure_unique_entities,
)

logger = logging.getLogger(__name__)

_MARKER_ERROR = "missing or invalid safety marker"


def _dumps(record: dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def render_lines(graph: KnowledgeGraph) -> list[str]:
    """Serialize *graph* to records: marker, then entities, then relations."""
    lines = [_dumps(FILE_MARKER.model_dump())]
    lines.extend(
        _dumps({"type": "entity", **entity.model_dump(by_alias=True)}) for entity in graph.entities
    )
    lines.extend(
        _dumps({"type": "relation", **relation.model_dump(by_alias=True)})
        for relation in graph.relations
    )
    return lines


def parse_lines(lines: list[str], *, source: str = "<memory>") -> KnowledgeGraph:
    """Parse text-format records into a graph.

    Blank lines are ignored. An input with no records at all is an empty
    graph. Otherwise the first record must be the safety marker.

    Raises:
        FormatError: If the marker is missing or invalid, or a record is
            not valid JSON or does not match its declared type.
    """
    records = [(lineno, line) for lineno, line in enumerate(lines, start=1) if line.strip()]
    if not records:
        return KnowledgeGraph.empty()

    first_lineno, first = records[0]
    try:
        StoreMarker.model_validate(json.loads(first))
    except (json.JSONDecodeError, ValidationError) as exc:
        msg = f"{source}:{first_lineno}: {_MARKER_ERROR}"
        raise FormatError(msg) from exc

    entities: list[Entity] = []
    relations: list[Relation] = []
    for lineno, line in records[1:]:
        try:
            item = json.loads(line)
            kind = item.get("type") if isinstance(item, dict) else None
            if kind == "entity":
                entities.append(Entity.model_validate(item))
            elif kind == "relation":
                relations.append(Relation.model_validate(item))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"{source}:{lineno}: malformed record: {exc}"
            raise FormatError(msg) from exc

    return KnowledgeGraph(entities=entities, relations=relations)


def write_atomic(path: Path, content: str) -> None:
    """Write *content* to *path* via a temp file in the same directory and a rename.

    Readers see either the previous file or the complete new one. A
    symlinked *path* keeps its link (the link target is replaced), and an
    existing file keeps its permission bits.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JSONLStorage:
    """Graph storage backed by a single JSON-lines file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JSONLStorage({str(self.path)!r})"

    def load_graph(self) -> KnowledgeGraph:
        """Read the file; a nonexistent file loads as an empty graph."""
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No graph file at %s, starting empty", self.path)
            return KnowledgeGraph.empty()
        except UnicodeDecodeError as exc:
            msg = f"{self.path}: not valid UTF-8"
            raise FormatError(msg) from exc
        return parse_lines(content.split("\n"), source=str(self.path))

    def save_graph(self, graph: KnowledgeGraph) -> None:
        """Overwrite the file with *graph*, creating parent directories."""
        ensure_unique_entities(graph)
        write_atomic(self.path, "\n".join(render_lines(graph)))
        logger.debug(
            "Saved %d entities and %d relations to %s",
            len(graph.entities),
            len(graph.relations),
            self.path,
        )

    def close(self) -> None:
        """Nothing to release: every call opens and closes the file itself."""
