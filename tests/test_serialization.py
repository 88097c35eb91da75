"""Tests for the persisted snapshot format."""

import json
import re

import pytest

from mindmap_core import (
    Document, MalformedDocument, serialize, deserialize, to_json, from_json, export_filename,
)
from mindmap_core import operations
from mindmap_core.models import ViewState


def _strip_view(document):
    return document.model_copy(update={"view": ViewState()})


class TestSerialize:
    def test_shape(self, tree):
        doc, ids = tree

        blob = serialize(doc)

        assert set(blob) == {"title", "data"}
        assert set(blob["data"]) == {"nodes", "connections", "rootNodeId"}
        assert blob["data"]["rootNodeId"] == ids["root"]

        record = blob["data"]["nodes"][ids["a"]]
        assert record["kind"] == "child"
        assert record["parentId"] == ids["root"]
        assert record["childIds"] == [ids["a1"], ids["a2"]]
        assert record["position"] == {"x": 100, "y": -50}
        assert record["content"] == {"kind": "text", "value": ""}
        assert record["style"]["backgroundColor"] == "#ffffff"

        connection = next(iter(blob["data"]["connections"].values()))
        assert set(connection) == {"id", "sourceId", "targetId", "curveKind"}

    def test_excludes_view_state(self, tree):
        doc, _ = tree
        doc = operations.set_zoom(doc, 1.5)
        doc = operations.set_pan_offset(doc, (10, 10))

        text = json.dumps(serialize(doc))

        assert "zoom" not in text
        assert "pan" not in text

    def test_order_independent(self, tree):
        doc, _ = tree
        shuffled = doc.model_copy(update={
            "nodes": dict(reversed(list(doc.nodes.items()))),
            "connections": dict(reversed(list(doc.connections.items()))),
        })

        assert to_json(shuffled) == to_json(doc)


class TestRoundTrip:
    def test_tree_round_trip(self, tree):
        doc, ids = tree
        doc, _ = operations.add_connection(doc, ids["a2"], ids["root"], "straight")
        doc = operations.set_node_style(doc, ids["b"], {"color": "#abcdef"})
        doc = operations.set_node_content(doc, ids["b"], {"kind": "link", "value": "https://x.test"})
        doc = operations.set_zoom(doc, 0.7)

        assert deserialize(serialize(doc)) == _strip_view(doc)

    def test_empty_round_trip(self, empty):
        assert deserialize(serialize(empty)) == empty

    def test_json_round_trip(self, tree):
        doc, _ = tree
        assert from_json(to_json(doc)) == doc

    def test_tree_without_parent_connection_round_trips(self, tree):
        doc, ids = tree
        tree_connection = next(
            c.id for c in doc.connections.values() if c.target_id == ids["b"]
        )
        doc = operations.delete_connection(doc, tree_connection)

        assert deserialize(serialize(doc)) == doc


class TestDeserialize:
    def test_missing_optional_fields_use_defaults(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        for record in blob["data"]["nodes"].values():
            del record["style"]
            record["content"] = None

        result = deserialize(blob)

        assert result.nodes[ids["a"]].style.font_size == 14
        assert result.nodes[ids["a"]].content.kind == "text"

    def test_missing_title_uses_default(self, empty):
        blob = serialize(empty)
        del blob["title"]
        assert deserialize(blob).title == "Untitled Mind Map"

    def test_accepts_legacy_field_names(self):
        blob = {
            "title": "Legacy",
            "data": {
                "nodes": {
                    "r": {"id": "r", "type": "root", "title": "Root", "position": {"x": 0, "y": 0},
                          "parentId": None, "children": ["c"]},
                    "c": {"id": "c", "type": "child", "title": "Child", "position": {"x": 5, "y": 5},
                          "parentId": "r", "children": [], "content": {"type": "image", "value": "a.png"}},
                },
                "connections": {
                    "k": {"id": "k", "sourceId": "r", "targetId": "c", "type": "curved"},
                },
                "rootNodeId": "r",
            },
        }

        doc = deserialize(blob)

        assert doc.nodes["r"].label == "Root"
        assert doc.nodes["r"].child_ids == ("c",)
        assert doc.nodes["c"].content.kind == "image"
        assert doc.connections["k"].curve_kind == "curved"

    @pytest.mark.parametrize("blob", [
        None,
        [],
        {"title": "x"},
        {"title": "x", "data": {"nodes": {}, "connections": {}}},
        {"title": "x", "data": {"nodes": [], "connections": {}, "rootNodeId": None}},
        {"title": 3, "data": {"nodes": {}, "connections": {}, "rootNodeId": None}},
    ])
    def test_structural_problems(self, blob):
        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_missing_required_node_field(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        del blob["data"]["connections"][next(iter(blob["data"]["connections"]))]["sourceId"]

        with pytest.raises(MalformedDocument) as exc_info:
            deserialize(blob)

        assert any("sourceId" in issue for issue in exc_info.value.issues)

    def test_dangling_parent(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        blob["data"]["nodes"][ids["b"]]["parentId"] = "ghost"

        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_asymmetric_children(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        blob["data"]["nodes"][ids["root"]]["childIds"] = [ids["a"]]

        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_duplicate_root(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        blob["data"]["nodes"][ids["b"]]["kind"] = "root"

        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_nodes_without_root(self, tree):
        doc, _ = tree
        blob = serialize(doc)
        blob["data"]["rootNodeId"] = None

        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_connection_to_missing_node(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        blob["data"]["connections"]["extra"] = {
            "id": "extra", "sourceId": ids["a"], "targetId": "ghost", "curveKind": "curved",
        }

        with pytest.raises(MalformedDocument):
            deserialize(blob)

    def test_parent_cycle_detached_from_root(self):
        blob = {
            "title": "Cycle",
            "data": {
                "nodes": {
                    "r": {"id": "r", "kind": "root", "position": {"x": 0, "y": 0}, "parentId": None},
                    "x": {"id": "x", "kind": "child", "position": {"x": 0, "y": 0},
                          "parentId": "y", "childIds": ["y"]},
                    "y": {"id": "y", "kind": "child", "position": {"x": 0, "y": 0},
                          "parentId": "x", "childIds": ["x"]},
                },
                "connections": {},
                "rootNodeId": "r",
            },
        }

        with pytest.raises(MalformedDocument) as exc_info:
            deserialize(blob)

        assert any("not reachable" in issue for issue in exc_info.value.issues)

    def test_non_finite_position(self, tree):
        doc, ids = tree
        blob = serialize(doc)
        blob["data"]["nodes"][ids["a"]]["position"]["x"] = float("nan")

        with pytest.raises(MalformedDocument) as exc_info:
            deserialize(blob)

        assert any("position" in issue for issue in exc_info.value.issues)

    def test_nan_literal_in_json_text(self, tree):
        doc, ids = tree
        text = re.sub(r'"x": 100(\.0)?', '"x": NaN', to_json(doc))
        assert "NaN" in text

        with pytest.raises(MalformedDocument):
            from_json(text)

    def test_invalid_json_text(self):
        with pytest.raises(MalformedDocument):
            from_json("{not json")


class TestExportFilename:
    @pytest.mark.parametrize("title, expected", [
        ("Plan", "Plan.json"),
        ("", "mind-map.json"),
        (None, "mind-map.json"),
        ("   ", "mind-map.json"),
        ("a/b", "a-b.json"),
    ])
    def test_names(self, title, expected):
        assert export_filename(title, "json") == expected

    def test_default_document(self):
        assert export_filename(Document().title, "png") == "Untitled Mind Map.png"
