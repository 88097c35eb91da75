"""
Persisted snapshot format for mind maps.

    {
      "title": "...",
      "data": {
        "nodes": {"<id>": NodeRecord, ...},
        "connections": {"<id>": ConnectionRecord, ...},
        "rootNodeId": "<id>" | null
      }
    }

The view state (zoom, pan offset) is never serialized. Output is canonical:
node and connection mappings are emitted sorted by id so that equal
documents serialize identically regardless of insertion order.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from .errors import MalformedDocument
from .models import Document, Node, Connection, DEFAULT_TITLE
from .validation import invariant_errors


DEFAULT_EXPORT_NAME = "mind-map"


def serialize(document: Document) -> dict:
    """Convert a document to its JSON-compatible persisted form."""
    nodes = {
        nid: document.nodes[nid].model_dump(mode="json", by_alias=True)
        for nid in sorted(document.nodes)
    }
    connections = {
        cid: document.connections[cid].model_dump(mode="json", by_alias=True)
        for cid in sorted(document.connections)
    }
    return {
        "title": document.title,
        "data": {
            "nodes": nodes,
            "connections": connections,
            "rootNodeId": document.root_node_id,
        },
    }


def _format_validation_error(prefix: str, error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{prefix}{'.' + location if location else ''}: {item['msg']}")
    return messages


def deserialize(blob: Any) -> Document:
    """
    Build a Document from its persisted form.

    Raises MalformedDocument if required fields are missing, a record fails
    schema validation, or the result would break a structural invariant.
    Absent optional node fields (style, content) take their defaults.
    """
    if not isinstance(blob, dict):
        raise MalformedDocument(["Snapshot must be a JSON object"])

    data = blob.get("data")
    if not isinstance(data, dict):
        raise MalformedDocument(["Missing required field: data"])

    issues: list[str] = []
    for field in ("nodes", "connections", "rootNodeId"):
        if field not in data:
            issues.append(f"Missing required field: data.{field}")
    if issues:
        raise MalformedDocument(issues)

    raw_nodes = data["nodes"]
    raw_connections = data["connections"]
    if not isinstance(raw_nodes, dict):
        issues.append("data.nodes must be an object keyed by node id")
    if not isinstance(raw_connections, dict):
        issues.append("data.connections must be an object keyed by connection id")
    root_node_id = data["rootNodeId"]
    if root_node_id is not None and not isinstance(root_node_id, str):
        issues.append("data.rootNodeId must be a string or null")
    title = blob.get("title")
    if title is None:
        title = DEFAULT_TITLE
    if not isinstance(title, str):
        issues.append("title must be a string")
    if issues:
        raise MalformedDocument(issues)

    nodes: dict[str, Node] = {}
    for key, record in raw_nodes.items():
        try:
            nodes[key] = Node.model_validate(record)
        except ValidationError as e:
            issues.extend(_format_validation_error(f"nodes.{key}", e))

    connections: dict[str, Connection] = {}
    for key, record in raw_connections.items():
        try:
            connections[key] = Connection.model_validate(record)
        except ValidationError as e:
            issues.extend(_format_validation_error(f"connections.{key}", e))

    if issues:
        raise MalformedDocument(issues)

    document = Document(
        title=title,
        nodes=nodes,
        connections=connections,
        root_node_id=root_node_id,
    )

    errors = invariant_errors(document)
    if errors:
        raise MalformedDocument(errors)

    return document


def to_json(document: Document, indent: int | None = 2) -> str:
    """Serialize a document to a JSON string (the export-as-JSON payload)."""
    return json.dumps(serialize(document), indent=indent)


def from_json(text: str) -> Document:
    """Parse a JSON string and deserialize it."""
    try:
        blob = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocument([f"Invalid JSON: {e}"]) from e
    return deserialize(blob)


def export_filename(title: str | None, extension: str) -> str:
    """File name for an export: '<title or "mind-map">.<extension>'."""
    name = (title or "").strip() or DEFAULT_EXPORT_NAME
    # Path separators would escape the export directory
    name = re.sub(r'[\\/]', "-", name)
    return f"{name}.{extension}"
