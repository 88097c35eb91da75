"""
Mind Map Core - Document model, operations, history, and serialization.

This module provides the document state engine used by the backend API,
the CLI and the MCP tools, ensuring a single source of truth for all
mind-map logic.
"""

from .models import (
    # Enums
    NodeKind,
    ContentKind,
    CurveKind,
    # Core models
    Position,
    NodeContent,
    NodeStyle,
    Node,
    Connection,
    ViewState,
    Document,
    # Request models (for API)
    CreateNodeRequest,
    UpdateNodeRequest,
    MoveNodeRequest,
    UpdateStyleRequest,
    SetContentRequest,
    CreateConnectionRequest,
    MindMapInfoRequest,
    ZoomRequest,
    PanRequest,
    # Constants
    DEFAULT_TITLE,
    MIN_ZOOM,
    MAX_ZOOM,
    ZOOM_STEP,
)

from .errors import MindMapError, NotFound, InvariantViolation, MalformedDocument
from .history import History
from .engine import MindMapEngine, is_significant
from .serialization import serialize, deserialize, to_json, from_json, export_filename
from .validation import validate_document, validation_summary, check_invariants, ValidationIssue, IssueSeverity
from .analysis import summarize_mindmap
from .export import export_png, render_snapshot

__all__ = [
    # Enums
    "NodeKind",
    "ContentKind",
    "CurveKind",
    # Models
    "Position",
    "NodeContent",
    "NodeStyle",
    "Node",
    "Connection",
    "ViewState",
    "Document",
    # Request models
    "CreateNodeRequest",
    "UpdateNodeRequest",
    "MoveNodeRequest",
    "UpdateStyleRequest",
    "SetContentRequest",
    "CreateConnectionRequest",
    "MindMapInfoRequest",
    "ZoomRequest",
    "PanRequest",
    # Constants
    "DEFAULT_TITLE",
    "MIN_ZOOM",
    "MAX_ZOOM",
    "ZOOM_STEP",
    # Errors
    "MindMapError",
    "NotFound",
    "InvariantViolation",
    "MalformedDocument",
    # Engine
    "History",
    "MindMapEngine",
    "is_significant",
    # Serialization
    "serialize",
    "deserialize",
    "to_json",
    "from_json",
    "export_filename",
    # Validation
    "validate_document",
    "validation_summary",
    "check_invariants",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_mindmap",
    # Export
    "export_png",
    "render_snapshot",
]
