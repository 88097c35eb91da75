"""Shared fixtures: small mind maps built through the public operations."""

import pytest

from mindmap_core import Document, MindMapEngine
from mindmap_core import operations


@pytest.fixture
def empty():
    return Document()


@pytest.fixture
def tree():
    """root -> (a -> (a1, a2), b). Returns (document, ids)."""
    doc = Document(title="Plan")
    doc, root = operations.create_node(doc, None, (0, 0))
    doc, a = operations.create_node(doc, root, (100, -50))
    doc, b = operations.create_node(doc, root, (100, 50))
    doc, a1 = operations.create_node(doc, a, (200, -80))
    doc, a2 = operations.create_node(doc, a, (200, -20))
    return doc, {"root": root, "a": a, "b": b, "a1": a1, "a2": a2}


@pytest.fixture
def engine():
    return MindMapEngine()
