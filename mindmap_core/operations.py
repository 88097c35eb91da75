"""
Document operations - pure mutations over immutable Document snapshots.

Every operation takes a Document and returns a new Document (plus the id of
any entity it created). The input snapshot is never modified; unchanged nodes
and connections are shared with the result. An operation that fails raises
before building anything, so a failed call has no effect.

Operations that reference an entity raise NotFound when it is missing.
Deletes are idempotent: deleting an absent id returns the input unchanged.
"""

import math
from typing import Optional, Any

from .errors import NotFound
from .models import (
    Document, Node, Connection, Position, NodeContent, NodeStyle, ViewState,
    NodeKind, ContentKind, CurveKind,
    DEFAULT_LABELS, MIN_ZOOM, MAX_ZOOM, DEFAULT_ZOOM, ZOOM_STEP,
    generate_id,
)


def _require_node(document: Document, node_id: str) -> Node:
    node = document.nodes.get(node_id)
    if node is None:
        raise NotFound("node", node_id)
    return node


def _as_position(position: Any) -> Position:
    """Accept a Position, an (x, y) pair or an {"x", "y"} mapping."""
    if isinstance(position, Position):
        return position
    if isinstance(position, dict):
        return Position.model_validate(position)
    x, y = position
    return Position(x=x, y=y)


def _replace_node(document: Document, node: Node, **changes) -> Document:
    nodes = dict(document.nodes)
    nodes[node.id] = node.model_copy(update=changes)
    return document.model_copy(update={"nodes": nodes})


# --- Node Operations ---

def create_node(
    document: Document,
    parent_id: Optional[str],
    position: Any,
    content_kind: str = ContentKind.TEXT.value,
    node_id: Optional[str] = None,
) -> tuple[Document, str]:
    """
    Create a node and return (new_document, node_id).

    - parent_id None and no root: the node becomes the root
    - parent_id None and a root exists: the node becomes a child of the root
    - otherwise: the node becomes a child of parent_id (NotFound if absent)

    Child creation appends to the parent's child_ids and adds a curved
    connection from parent to child.
    """
    kind = ContentKind(content_kind).value
    pos = _as_position(position)
    new_id = node_id or generate_id()

    if parent_id is None and document.root_node_id is not None:
        parent_id = document.root_node_id

    base = Node(
        id=new_id,
        label=DEFAULT_LABELS[kind],
        position=pos,
        content=NodeContent(kind=kind),
    )

    nodes = dict(document.nodes)

    if parent_id is None:
        nodes[new_id] = base.model_copy(update={"kind": NodeKind.ROOT.value})
        return document.model_copy(update={"nodes": nodes, "root_node_id": new_id}), new_id

    parent = _require_node(document, parent_id)
    nodes[new_id] = base.model_copy(update={"parent_id": parent_id})
    nodes[parent_id] = parent.model_copy(update={"child_ids": parent.child_ids + (new_id,)})

    connection = Connection(source_id=parent_id, target_id=new_id, curve_kind=CurveKind.CURVED.value)
    connections = dict(document.connections)
    connections[connection.id] = connection

    return document.model_copy(update={"nodes": nodes, "connections": connections}), new_id


def delete_node(document: Document, node_id: str) -> Document:
    """
    Delete a node, all of its descendants and every connection touching them.

    No-op if the node does not exist. Deleting the root clears root_node_id.
    """
    node = document.nodes.get(node_id)
    if node is None:
        return document

    removed = {node_id, *document.descendants(node_id)}

    nodes = {nid: n for nid, n in document.nodes.items() if nid not in removed}
    connections = {
        cid: c for cid, c in document.connections.items()
        if c.source_id not in removed and c.target_id not in removed
    }

    # Detach from the former parent
    if node.parent_id is not None and node.parent_id in nodes:
        parent = nodes[node.parent_id]
        nodes[parent.id] = parent.model_copy(
            update={"child_ids": tuple(cid for cid in parent.child_ids if cid != node_id)}
        )

    root_node_id = None if document.root_node_id in removed else document.root_node_id

    return document.model_copy(update={
        "nodes": nodes,
        "connections": connections,
        "root_node_id": root_node_id,
    })


def move_node(document: Document, node_id: str, position: Any) -> Document:
    """Replace a node's position."""
    node = _require_node(document, node_id)
    return _replace_node(document, node, position=_as_position(position))


def rename_node(document: Document, node_id: str, label: str) -> Document:
    """Replace a node's label (opaque rich-text markup)."""
    node = _require_node(document, node_id)
    return _replace_node(document, node, label=label)


def set_node_style(document: Document, node_id: str, style: dict) -> Document:
    """Merge the given style fields into a node's style. None values are ignored."""
    node = _require_node(document, node_id)
    updates = {k: v for k, v in style.items() if v is not None}
    merged = NodeStyle.model_validate({**node.style.model_dump(), **updates})
    return _replace_node(document, node, style=merged)


def set_node_content(document: Document, node_id: str, content: Any) -> Document:
    """Replace a node's content."""
    node = _require_node(document, node_id)
    if not isinstance(content, NodeContent):
        content = NodeContent.model_validate(content)
    return _replace_node(document, node, content=content)


# --- Connection Operations ---

def add_connection(
    document: Document,
    source_id: str,
    target_id: str,
    curve_kind: str = CurveKind.CURVED.value,
    connection_id: Optional[str] = None,
) -> tuple[Document, str]:
    """
    Add a manual connection and return (new_document, connection_id).

    Tree shape is not enforced: manual connections may form cycles or
    cross-links. Both endpoints must exist.
    """
    _require_node(document, source_id)
    _require_node(document, target_id)

    connection = Connection(
        id=connection_id or generate_id(),
        source_id=source_id,
        target_id=target_id,
        curve_kind=CurveKind(curve_kind).value,
    )
    connections = dict(document.connections)
    connections[connection.id] = connection
    return document.model_copy(update={"connections": connections}), connection.id


def delete_connection(document: Document, connection_id: str) -> Document:
    """Delete a connection. No-op if it does not exist."""
    if connection_id not in document.connections:
        return document
    connections = {cid: c for cid, c in document.connections.items() if cid != connection_id}
    return document.model_copy(update={"connections": connections})


# --- Document Operations ---

def set_title(document: Document, title: str) -> Document:
    """Replace the document title."""
    return document.model_copy(update={"title": title})


def clear(document: Document) -> Document:
    """Reset to an empty document, keeping the title. Also resets the view."""
    return Document(title=document.title)


# --- View Operations ---

def clamp_zoom(value: float) -> float:
    """Clamp a zoom level to [MIN_ZOOM, MAX_ZOOM]. NaN falls back to DEFAULT_ZOOM."""
    if math.isnan(value):
        return DEFAULT_ZOOM
    return max(MIN_ZOOM, min(MAX_ZOOM, value))


def set_zoom(document: Document, zoom: float) -> Document:
    """Set the zoom level, clamped to the allowed range. Never rejects."""
    view = document.view.model_copy(update={"zoom": clamp_zoom(zoom)})
    return document.model_copy(update={"view": view})


def zoom_in(document: Document) -> Document:
    return set_zoom(document, round(document.view.zoom + ZOOM_STEP, 2))


def zoom_out(document: Document) -> Document:
    return set_zoom(document, round(document.view.zoom - ZOOM_STEP, 2))


def set_pan_offset(document: Document, offset: Any) -> Document:
    """Set the pan offset."""
    view = document.view.model_copy(update={"pan_offset": _as_position(offset)})
    return document.model_copy(update={"view": view})


def reset_view(document: Document) -> Document:
    """Reset zoom and pan offset to their defaults."""
    return document.model_copy(update={"view": ViewState(zoom=DEFAULT_ZOOM)})
