"""Tests for file persistence around the engine."""

import json

import pytest

from mindmap_core import MalformedDocument, MindMapEngine
from mindmap_backend import MindMapManager


@pytest.fixture
def manager(tmp_path):
    return MindMapManager(storage_path=tmp_path / "store" / "mindmap.json")


class TestSaveAndOpen:
    def test_save_writes_persisted_format(self, manager):
        root = manager.engine.create_node(None, (0, 0))
        manager.engine.set_title("Trip")

        path = manager.save()

        data = json.loads(path.read_text())
        assert data["title"] == "Trip"
        assert data["data"]["rootNodeId"] == root
        assert "zoom" not in path.read_text()
        assert manager.is_dirty is False

    def test_open_replaces_document_and_resets_history(self, manager, tmp_path):
        other = MindMapManager(storage_path=tmp_path / "other.json")
        root = other.engine.create_node(None, (0, 0))
        other.engine.create_node(root, (10, 10))
        other.save()

        manager.engine.create_node(None, (5, 5))
        manager.open_mindmap(tmp_path / "other.json")

        assert len(manager.document.nodes) == 2
        assert manager.engine.can_undo is False
        assert manager.file_path == tmp_path / "other.json"

    def test_open_missing_file(self, manager, tmp_path):
        with pytest.raises(FileNotFoundError):
            manager.open_mindmap(tmp_path / "nope.json")

    def test_open_malformed_file_keeps_current_document(self, manager, tmp_path):
        manager.engine.create_node(None, (0, 0))
        before = manager.document
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"title": "x", "data": {"nodes": {}}}))

        with pytest.raises(MalformedDocument):
            manager.open_mindmap(bad)

        assert manager.document is before

    def test_open_invalid_json(self, manager, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{")

        with pytest.raises(MalformedDocument):
            manager.open_mindmap(bad)

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            MindMapManager().save()

    def test_save_callback(self, manager):
        seen = []
        manager.on_save(lambda path, info: seen.append(info))
        manager.engine.create_node(None, (0, 0))

        manager.save()

        assert seen == [{"title": "Untitled Mind Map", "node_count": 1, "connection_count": 0}]


class TestLoadSaved:
    def test_missing_storage_file_gives_empty_document(self, manager):
        doc = manager.load_saved()
        assert doc.nodes == {}

    def test_round_trip_through_storage(self, tmp_path):
        path = tmp_path / "mindmap.json"
        first = MindMapManager(storage_path=path)
        root = first.engine.create_node(None, (0, 0))
        first.engine.rename_node(root, "Center")
        first.save()

        second = MindMapManager(storage_path=path)
        second.load_saved()

        assert second.document.nodes[root].label == "Center"
        assert second.document == first.document

    def test_corrupt_storage_file_is_ignored(self, tmp_path):
        path = tmp_path / "mindmap.json"
        path.write_text("not json")

        manager = MindMapManager(storage_path=path)
        doc = manager.load_saved()

        assert doc.nodes == {}


class TestDirtyAndAutosave:
    def test_significant_change_marks_dirty(self, manager):
        manager.engine.create_node(None, (0, 0))
        assert manager.is_dirty

    def test_transient_change_does_not_mark_dirty(self, manager):
        manager.engine.zoom_in()
        manager.engine.set_pan_offset((4, 4))
        assert manager.is_dirty is False

    def test_autosave_after_significant_change(self, tmp_path):
        path = tmp_path / "auto.json"
        manager = MindMapManager(MindMapEngine(), storage_path=path, autosave=True)

        manager.engine.create_node(None, (0, 0))

        assert path.exists()
        assert len(json.loads(path.read_text())["data"]["nodes"]) == 1
        assert manager.is_dirty is False

        manager.engine.undo()
        assert json.loads(path.read_text())["data"]["nodes"] == {}

    def test_posted_snapshot_is_unsaved_and_autosaved(self, tmp_path):
        path = tmp_path / "auto.json"
        manager = MindMapManager(storage_path=path, autosave=True)
        blob = {
            "title": "Posted",
            "data": {
                "nodes": {"r": {"id": "r", "kind": "root", "position": {"x": 0, "y": 0}}},
                "connections": {},
                "rootNodeId": "r",
            },
        }

        manager.engine.load(blob)

        assert json.loads(path.read_text())["title"] == "Posted"
        assert manager.is_dirty is False

    def test_posted_snapshot_marks_dirty_without_autosave(self, manager):
        manager.engine.load({"title": "x", "data": {"nodes": {}, "connections": {}, "rootNodeId": None}})
        assert manager.is_dirty

    def test_new_mindmap_is_unsaved(self, manager):
        manager.new_mindmap("Fresh")
        assert manager.is_dirty

    def test_opening_a_file_does_not_autosave_over_storage(self, tmp_path):
        storage = tmp_path / "storage.json"
        manager = MindMapManager(storage_path=storage, autosave=True)
        manager.engine.set_title("Stored")

        other = MindMapManager(storage_path=tmp_path / "other.json")
        other.engine.set_title("Other")
        other.save()

        manager.open_mindmap(tmp_path / "other.json")

        assert json.loads(storage.read_text())["title"] == "Stored"
        assert manager.is_dirty is False
        assert manager.file_path == tmp_path / "other.json"


class TestExportFiles:
    def test_export_json_named_after_title(self, manager, tmp_path):
        manager.engine.set_title("Roadmap")
        manager.engine.create_node(None, (0, 0))

        path = manager.export_json(tmp_path / "exports")

        assert path.name == "Roadmap.json"
        assert json.loads(path.read_text()) == manager.engine.serialize()

    def test_export_png(self, manager, tmp_path):
        manager.engine.set_title("")
        path = manager.export_png(tmp_path)

        assert path.name == "mind-map.png"
        assert path.read_bytes().startswith(b"\x89PNG")
        assert manager.document.title == ""

    def test_get_state(self, manager):
        manager.engine.create_node(None, (0, 0))
        state = manager.get_state()

        assert state["can_undo"] is True
        assert state["can_redo"] is False
        assert state["view"]["zoom"] == 1.0
        assert state["view"]["panOffset"] == {"x": 0, "y": 0}
        assert state["mindmap"]["data"]["rootNodeId"] is not None
