"""Tests for the text-format backend."""

import json
import stat
from pathlib import Path

import pytest

from kgstore.domain.errors import DuplicateEntityError, FormatError
from kgstore.domain.graph import Entity, KnowledgeGraph, Relation
from kgstore.infrastructure.jsonl import JSONLStorage, parse_lines, render_lines

MARKER_LINE = '{"type":"_aim","source":"mcp-knowledge-graph"}'


class TestLoad:
    def test_missing_file_is_empty_graph(self, tmp_path: Path) -> None:
        store = JSONLStorage(tmp_path / "nope" / "memory.jsonl")
        assert store.load_graph() == KnowledgeGraph.empty()

    def test_empty_file_is_empty_graph(self, jsonl_path: Path) -> None:
        jsonl_path.write_text("\n\n", encoding="utf-8")
        assert JSONLStorage(jsonl_path).load_graph() == KnowledgeGraph.empty()

    def test_non_utf8_file_raises_format_error(self, jsonl_path: Path) -> None:
        jsonl_path.write_bytes(MARKER_LINE.encode() + b"\n\xff\xfe")
        with pytest.raises(FormatError, match="not valid UTF-8") as exc_info:
            JSONLStorage(jsonl_path).load_graph()
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_reads_entities_and_relations(self, jsonl_path: Path) -> None:
        jsonl_path.write_text(
            "\n".join(
                [
                    MARKER_LINE,
                    '{"type":"entity","name":"Alice","entityType":"person",'
                    '"observations":["likes tea"]}',
                    '{"type":"relation","from":"Alice","to":"Bob","relationType":"knows"}',
                ]
            ),
            encoding="utf-8",
        )
        graph = JSONLStorage(jsonl_path).load_graph()
        assert graph.entities == [
            Entity(name="Alice", entity_type="person", observations=["likes tea"])
        ]
        # Orphaned relation (Bob has no entity record) is preserved.
        assert graph.relations == [Relation(from_="Alice", to="Bob", relation_type="knows")]

    def test_blank_lines_ignored(self, jsonl_path: Path) -> None:
        jsonl_path.write_text(
            "\n" + MARKER_LINE + "\n\n"
            '{"type":"entity","name":"A","entityType":"t","observations":[]}\n   \n',
            encoding="utf-8",
        )
        graph = JSONLStorage(jsonl_path).load_graph()
        assert [e.name for e in graph.entities] == ["A"]

    def test_unknown_record_types_skipped(self, jsonl_path: Path) -> None:
        jsonl_path.write_text(
            "\n".join(
                [
                    MARKER_LINE,
                    '{"type":"comment","text":"future record"}',
                    '{"type":"entity","name":"A","entityType":"t","observations":[]}',
                ]
            ),
            encoding="utf-8",
        )
        graph = JSONLStorage(jsonl_path).load_graph()
        assert len(graph.entities) == 1
        assert graph.relations == []


class TestMarkerEnforcement:
    @pytest.mark.parametrize(
        "first_line",
        [
            '{"hello":"world"}',
            '{"type":"_aim"}',
            '{"type":"entity","name":"A","entityType":"t","observations":[]}',
            '{"type":"_aim","source":"other-tool"}',
            '{"source":"mcp-knowledge-graph"}',
            "not json at all",
            "[1, 2, 3]",
        ],
    )
    def test_bad_marker_raises(self, jsonl_path: Path, first_line: str) -> None:
        jsonl_path.write_text(first_line + "\n", encoding="utf-8")
        with pytest.raises(FormatError, match="missing or invalid safety marker"):
            JSONLStorage(jsonl_path).load_graph()

    def test_marker_with_extra_keys_accepted(self) -> None:
        lines = ['{"type":"_aim","source":"mcp-knowledge-graph","version":2}']
        assert parse_lines(lines) == KnowledgeGraph.empty()


class TestMalformedRecords:
    def test_invalid_json_reports_line(self, jsonl_path: Path) -> None:
        jsonl_path.write_text(MARKER_LINE + "\n{broken\n", encoding="utf-8")
        with pytest.raises(FormatError, match=r"memory\.jsonl:2"):
            JSONLStorage(jsonl_path).load_graph()

    def test_entity_missing_fields(self) -> None:
        with pytest.raises(FormatError, match="malformed record"):
            parse_lines([MARKER_LINE, '{"type":"entity","name":"A"}'])

    def test_relation_missing_fields(self) -> None:
        with pytest.raises(FormatError):
            parse_lines([MARKER_LINE, '{"type":"relation","from":"A"}'])


class TestSave:
    def test_file_layout(self, jsonl_store: JSONLStorage, sample_graph: KnowledgeGraph) -> None:
        jsonl_store.save_graph(sample_graph)
        lines = jsonl_store.path.read_text(encoding="utf-8").split("\n")
        assert lines[0] == MARKER_LINE
        records = [json.loads(line) for line in lines[1:]]
        assert [r["type"] for r in records] == ["entity"] * 3 + ["relation"] * 2
        assert records[0] == {
            "type": "entity",
            "name": "Alice",
            "entityType": "person",
            "observations": ["likes tea", "lives in Oslo"],
        }
        assert records[3] == {
            "type": "relation",
            "from": "Alice",
            "to": "Bob",
            "relationType": "knows",
        }

    def test_round_trip_preserves_order(
        self, jsonl_path: Path, sample_graph: KnowledgeGraph
    ) -> None:
        JSONLStorage(jsonl_path).save_graph(sample_graph)
        assert JSONLStorage(jsonl_path).load_graph() == sample_graph

    def test_alice_example(self, jsonl_path: Path) -> None:
        graph = KnowledgeGraph.model_validate(
            {
                "entities": [
                    {"name": "Alice", "entityType": "person", "observations": ["likes tea"]}
                ],
                "relations": [],
            }
        )
        JSONLStorage(jsonl_path).save_graph(graph)
        loaded = JSONLStorage(jsonl_path).load_graph()
        assert loaded.entities[0].name == "Alice"
        assert loaded.entities[0].entity_type == "person"
        assert loaded.entities[0].observations == ["likes tea"]

    def test_unicode_written_as_utf8(self, jsonl_path: Path) -> None:
        graph = KnowledgeGraph(
            entities=[Entity(name="Zoë", entity_type="person", observations=["café ☕"])]
        )
        JSONLStorage(jsonl_path).save_graph(graph)
        assert "café ☕" in jsonl_path.read_text(encoding="utf-8")
        assert JSONLStorage(jsonl_path).load_graph() == graph

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "memory.jsonl"
        JSONLStorage(path).save_graph(KnowledgeGraph.empty())
        assert path.read_text(encoding="utf-8") == MARKER_LINE

    def test_overwrites_not_merges(
        self, jsonl_store: JSONLStorage, sample_graph: KnowledgeGraph
    ) -> None:
        jsonl_store.save_graph(sample_graph)
        replacement = KnowledgeGraph(entities=[Entity(name="Solo", entity_type="t")])
        jsonl_store.save_graph(replacement)
        assert jsonl_store.load_graph() == replacement

    def test_duplicate_entities_rejected(self, jsonl_store: JSONLStorage) -> None:
        graph = KnowledgeGraph(
            entities=[Entity(name="A", entity_type="x"), Entity(name="A", entity_type="y")]
        )
        with pytest.raises(DuplicateEntityError):
            jsonl_store.save_graph(graph)
        assert not jsonl_store.path.exists()

    def test_duplicate_relations_kept(self, jsonl_store: JSONLStorage) -> None:
        rel = Relation(from_="A", to="B", relation_type="knows")
        graph = KnowledgeGraph(relations=[rel, rel])
        jsonl_store.save_graph(graph)
        assert jsonl_store.load_graph().relations == [rel, rel]

    def test_no_temp_files_left_behind(
        self, jsonl_store: JSONLStorage, sample_graph: KnowledgeGraph
    ) -> None:
        jsonl_store.save_graph(sample_graph)
        assert [p.name for p in jsonl_store.path.parent.iterdir()] == ["memory.jsonl"]

    def test_failed_write_keeps_previous_file(
        self,
        jsonl_store: JSONLStorage,
        sample_graph: KnowledgeGraph,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        jsonl_store.save_graph(sample_graph)

        def _boom(*_args: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("kgstore.infrastructure.jsonl.os.replace", _boom)
        with pytest.raises(OSError, match="disk full"):
            jsonl_store.save_graph(KnowledgeGraph.empty())

        assert jsonl_store.load_graph() == sample_graph
        assert [p.name for p in jsonl_store.path.parent.iterdir()] == ["memory.jsonl"]


    def test_keeps_existing_file_mode(
        self, jsonl_store: JSONLStorage, sample_graph: KnowledgeGraph
    ) -> None:
        jsonl_store.save_graph(KnowledgeGraph.empty())
        jsonl_store.path.chmod(0o644)
        jsonl_store.save_graph(sample_graph)
        assert stat.S_IMODE(jsonl_store.path.stat().st_mode) == 0o644

    def test_keeps_symlink(self, tmp_path: Path, sample_graph: KnowledgeGraph) -> None:
        real = tmp_path / "data" / "real.jsonl"
        real.parent.mkdir()
        JSONLStorage(real).save_graph(KnowledgeGraph.empty())
        link = tmp_path / "memory.jsonl"
        link.symlink_to(real)

        JSONLStorage(link).save_graph(sample_graph)

        assert link.is_symlink()
        assert JSONLStorage(real).load_graph() == sample_graph

class TestRenderLines:
    def test_empty_graph_is_marker_only(self) -> None:
        assert render_lines(KnowledgeGraph.empty()) == [MARKER_LINE]
