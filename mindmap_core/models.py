"""
Core data models for mind maps.

These models define the canonical schema for a mind-map document:
- Nodes arranged in a single tree anchored at a root node
- Connections drawn between nodes (parent/child links plus manual links)
- The document title and the transient view state (zoom, pan offset)

All document models are frozen: a Document is an immutable snapshot and every
mutation produces a new one. Unchanged nodes and connections are shared
between snapshots.

Field Naming Convention:
- Python attributes use snake_case (`parent_id`, `child_ids`)
- JSON serialization outputs camelCase (`parentId`, `childIds`)
- For backward compatibility, the legacy field names `type`, `title` and
  `children` are accepted on input and converted
"""

from enum import Enum
from types import MappingProxyType
from typing import Optional, Any, Mapping
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel
import uuid


DEFAULT_TITLE = "Untitled Mind Map"

# Zoom range and step for the view
MIN_ZOOM = 0.5
MAX_ZOOM = 2.0
DEFAULT_ZOOM = 1.0
ZOOM_STEP = 0.1


class NodeKind(str, Enum):
    """Structural role of a node in the tree."""
    ROOT = "root"
    CHILD = "child"


class ContentKind(str, Enum):
    """What a node's content value holds."""
    TEXT = "text"
    IMAGE = "image"
    LINK = "link"


class CurveKind(str, Enum):
    """How a connection is drawn."""
    STRAIGHT = "straight"
    CURVED = "curved"


DEFAULT_LABELS = {
    ContentKind.TEXT.value: "New Node",
    ContentKind.IMAGE.value: "New Image",
    ContentKind.LINK.value: "New Link",
}


def generate_id() -> str:
    """Generate a unique node or connection ID."""
    return str(uuid.uuid4())


class _Record(BaseModel):
    """Base for frozen document records serialized with camelCase keys."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
        allow_inf_nan=False,
    )


class Position(_Record):
    """A point in document space (unscaled, independent of pan and zoom)."""
    x: float = 0
    y: float = 0


class NodeContent(_Record):
    """Tagged content attached to a node."""
    kind: ContentKind = ContentKind.TEXT.value
    value: str = ""

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'type' field to 'kind'."""
        if isinstance(data, dict) and 'type' in data and 'kind' not in data:
            data = dict(data)
            data['kind'] = data.pop('type')
        return data


class NodeStyle(_Record):
    """Presentation attributes for a node. Pure display data."""
    color: str = "#000000"
    background_color: str = "#ffffff"
    font_size: float = 14
    font_weight: str = "normal"
    border_color: str = "#e5e7eb"
    border_width: float = 1
    border_radius: float = 8


class Node(_Record):
    """A node in the mind map."""
    id: str = Field(default_factory=generate_id)
    kind: NodeKind = NodeKind.CHILD.value
    label: str = DEFAULT_LABELS[ContentKind.TEXT.value]
    position: Position = Field(default_factory=Position)
    parent_id: Optional[str] = None
    child_ids: tuple[str, ...] = ()
    content: NodeContent = Field(default_factory=NodeContent)
    style: NodeStyle = Field(default_factory=NodeStyle)

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'type'/'title'/'children' fields and null optionals."""
        if isinstance(data, dict):
            data = dict(data)
            if 'type' in data and 'kind' not in data:
                data['kind'] = data.pop('type')
            if 'title' in data and 'label' not in data:
                data['label'] = data.pop('title')
            if 'children' in data and 'childIds' not in data and 'child_ids' not in data:
                data['childIds'] = data.pop('children')
            # Absent or null optional fields fall back to defaults
            for key in ('style', 'content'):
                if key in data and data[key] is None:
                    del data[key]
        return data


class Connection(_Record):
    """
    A directed connection drawn between two nodes.

    Connections are a rendering overlay: the authoritative tree structure is
    held in Node.parent_id / Node.child_ids.
    """
    id: str = Field(default_factory=generate_id)
    source_id: str
    target_id: str
    curve_kind: CurveKind = CurveKind.CURVED.value

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'type' field to 'curveKind'."""
        if isinstance(data, dict) and 'type' in data and 'curveKind' not in data and 'curve_kind' not in data:
            data = dict(data)
            data['curveKind'] = data.pop('type')
        return data


class ViewState(_Record):
    """Zoom level and pan offset. Transient, never persisted."""
    zoom: float = DEFAULT_ZOOM
    pan_offset: Position = Field(default_factory=Position)


# Document fields held as read-only mappings so snapshots can be shared
_FROZEN_MAPS = ("nodes", "connections")


class Document(_Record):
    """
    The complete mind-map state.
    One Document is one immutable snapshot in the undo history. Its node and
    connection maps are read-only views; operations build new maps.
    """
    title: str = DEFAULT_TITLE
    nodes: Mapping[str, Node] = Field(default_factory=dict)
    connections: Mapping[str, Connection] = Field(default_factory=dict)
    root_node_id: Optional[str] = None
    view: ViewState = Field(default_factory=ViewState)

    @field_validator("nodes", "connections", mode="after")
    @classmethod
    def freeze_maps(cls, value: Mapping) -> Mapping:
        return MappingProxyType(dict(value))

    @field_serializer("nodes", "connections", mode="wrap")
    def dump_maps(self, value: Mapping, handler):
        return handler(dict(value))

    def model_copy(self, *, update: Optional[dict] = None, deep: bool = False) -> "Document":
        """Copy with updates; replacement node and connection maps are frozen too."""
        if update:
            update = {
                key: MappingProxyType(dict(value)) if key in _FROZEN_MAPS else value
                for key, value in update.items()
            }
        return super().model_copy(update=update, deep=deep)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID."""
        return self.nodes.get(node_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        """Get a connection by ID."""
        return self.connections.get(connection_id)

    def descendants(self, node_id: str) -> list[str]:
        """Ids of a node's descendants, depth-first over child_ids."""
        result = []
        seen = {node_id}
        stack = list(reversed(self.nodes[node_id].child_ids)) if node_id in self.nodes else []
        while stack:
            current = stack.pop()
            if current in seen or current not in self.nodes:
                continue
            seen.add(current)
            result.append(current)
            stack.extend(reversed(self.nodes[current].child_ids))
        return result


# --- API Request/Response Models ---

class CreateNodeRequest(BaseModel):
    """Request to create a new node."""
    model_config = ConfigDict(allow_inf_nan=False)

    parent_id: Optional[str] = None
    x: float = 0
    y: float = 0
    content_kind: ContentKind = ContentKind.TEXT


class UpdateNodeRequest(BaseModel):
    """Request to rename a node."""
    label: str


class MoveNodeRequest(BaseModel):
    """Request to move a node. commit=False marks a live drag frame."""
    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    commit: bool = True


class UpdateStyleRequest(BaseModel):
    """Request to update a node's style (partial update)."""
    model_config = ConfigDict(allow_inf_nan=False)

    color: Optional[str] = None
    background_color: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    border_radius: Optional[float] = None


class SetContentRequest(BaseModel):
    """Request to replace a node's content."""
    kind: ContentKind = ContentKind.TEXT
    value: str = ""


class CreateConnectionRequest(BaseModel):
    """Request to create a new connection."""
    source_id: str
    target_id: str
    curve_kind: CurveKind = CurveKind.CURVED


class MindMapInfoRequest(BaseModel):
    """Request to update the document title."""
    title: str


class ZoomRequest(BaseModel):
    """Request to set the zoom level (clamped)."""
    model_config = ConfigDict(allow_inf_nan=False)

    zoom: float


class PanRequest(BaseModel):
    """Request to set the pan offset."""
    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
