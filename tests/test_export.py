"""Tests for PNG export."""

import io

from PIL import Image

from mindmap_core import export_png, render_snapshot, serialize
from mindmap_core import operations
from mindmap_core.export import MARGIN, MAX_DIMENSION, NODE_WIDTH, NODE_HEIGHT


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestExportPng:
    def test_empty_document_renders(self, empty):
        data = export_png(empty)

        assert data.startswith(PNG_SIGNATURE)
        image = Image.open(io.BytesIO(data))
        assert image.size == (NODE_WIDTH + 2 * MARGIN, NODE_HEIGHT + 2 * MARGIN)

    def test_size_covers_every_node(self, tree):
        doc, _ = tree

        image = render_snapshot(serialize(doc))

        # x spans 0..200, y spans -80..50
        assert image.size == (200 + NODE_WIDTH + 2 * MARGIN, 130 + NODE_HEIGHT + 2 * MARGIN)

    def test_scale(self, tree):
        doc, _ = tree
        small = render_snapshot(serialize(doc), scale=1.0)
        large = render_snapshot(serialize(doc), scale=2.0)
        assert large.size[0] > small.size[0]

    def test_node_fill_is_drawn_at_its_position(self, empty):
        doc, root = operations.create_node(empty, None, (0, 0))
        doc = operations.set_node_style(doc, root, {"background_color": "#ff0000"})
        doc = operations.rename_node(doc, root, "")

        image = render_snapshot(serialize(doc))

        inside = (MARGIN + NODE_WIDTH // 2, MARGIN + NODE_HEIGHT // 2)
        assert image.getpixel(inside) == (255, 0, 0)
        assert image.getpixel((2, 2)) == (255, 255, 255)

    def test_bad_colors_and_markup_do_not_break_rendering(self, tree):
        doc, ids = tree
        doc = operations.set_node_style(doc, ids["a"], {"color": "not-a-color", "border_color": "#zzzzzz"})
        doc = operations.rename_node(doc, ids["a"], "<p>A <i>very</i> long label that will not fit in one box</p>")
        doc, _ = operations.add_connection(doc, ids["a1"], ids["b"], "straight")

        assert export_png(doc).startswith(PNG_SIGNATURE)

    def test_export_does_not_change_document(self, tree):
        doc, _ = tree
        before = serialize(doc)
        export_png(doc)
        assert serialize(doc) == before

    def test_far_apart_nodes_are_drawn_smaller(self, empty):
        doc, root = operations.create_node(empty, None, (0, 0))
        doc, _ = operations.create_node(doc, root, (200000, 200000))

        image = Image.open(io.BytesIO(export_png(doc)))

        assert max(image.size) <= MAX_DIMENSION
        assert min(image.size) > MAX_DIMENSION - 2 * MARGIN - NODE_WIDTH

    def test_scale_is_capped_for_large_requests(self, tree):
        doc, _ = tree
        image = render_snapshot(serialize(doc), scale=1000)
        assert image.size[0] <= MAX_DIMENSION
        assert image.size[1] <= MAX_DIMENSION
