"""Shared pytest fixtures for kgstore tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from kgstore.domain.graph import Entity, KnowledgeGraph, Relation
from kgstore.infrastructure.jsonl import JSONLStorage
from kgstore.infrastructure.sqlite import SQLiteStorage


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def sample_graph() -> KnowledgeGraph:
    """Three people, two relations, mixed observation counts."""
    return KnowledgeGraph(
        entities=[
            Entity(name="Alice", entity_type="person", observations=["likes tea", "lives in Oslo"]),
            Entity(name="Bob", entity_type="person", observations=[]),
            Entity(name="Acme", entity_type="company", observations=["founded 1999"]),
        ],
        relations=[
            Relation(from_="Alice", to="Bob", relation_type="knows"),
            Relation(from_="Bob", to="Acme", relation_type="works_at"),
        ],
    )


@pytest.fixture
def jsonl_path(tmp_path: Path) -> Path:
    return tmp_path / "memory.jsonl"


@pytest.fixture
def jsonl_store(jsonl_path: Path) -> JSONLStorage:
    return JSONLStorage(jsonl_path)


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterator[SQLiteStorage]:
    """SQLite backend on a temp file, closed after the test."""
    store = SQLiteStorage(tmp_path / "memory.db")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in a temp CWD with no storage env vars leaking in.

    Use via ``@pytest.mark.usefixtures("_isolated_env")``.
    """
    for name in (
        "STORAGE_BACKEND",
        "MEMORY_FILE_PATH",
        "KGSTORE_STORAGE_BACKEND",
        "KGSTORE_MEMORY_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
