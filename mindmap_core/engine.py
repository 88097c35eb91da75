"""
Mind-map engine - Document state plus linear undo/redo history.

This module implements:
- One explicitly constructed engine per open mind map (no shared global state)
- Named mutation operations, each classified as significant or transient
- Snapshot-based undo/redo via History
- Load/serialize/export against the persisted snapshot format
- Change callbacks for real-time sync

Significant operations record an undo boundary. Transient operations (zoom,
pan, live drag frames) replace the current snapshot without touching history,
so a burst of them never floods the undo stack.
"""

import logging
from typing import Any, Callable, Optional

from . import operations
from .analysis import MindMapSummary, summarize_mindmap
from .export import export_png
from .history import History
from .models import Document, ContentKind, CurveKind, DEFAULT_TITLE
from .serialization import serialize, deserialize, to_json, export_filename
from .validation import ValidationIssue, validate_document, check_invariants

logger = logging.getLogger(__name__)


SIGNIFICANT = "significant"
TRANSIENT = "transient"

# Classification of every named operation
OPERATION_KINDS: dict[str, str] = {
    "create_node": SIGNIFICANT,
    "delete_node": SIGNIFICANT,
    "move_node": SIGNIFICANT,
    "rename_node": SIGNIFICANT,
    "set_node_style": SIGNIFICANT,
    "set_node_content": SIGNIFICANT,
    "add_connection": SIGNIFICANT,
    "delete_connection": SIGNIFICANT,
    "set_title": SIGNIFICANT,
    "clear": SIGNIFICANT,
    "drag_node": TRANSIENT,
    "set_zoom": TRANSIENT,
    "zoom_in": TRANSIENT,
    "zoom_out": TRANSIENT,
    "reset_view": TRANSIENT,
    "set_pan_offset": TRANSIENT,
}


# Transient operations whose frames fold into the next commit
HOLDS_ORIGIN = frozenset({"drag_node"})


def is_significant(operation: str) -> bool:
    """Whether a named operation records an undo boundary."""
    return OPERATION_KINDS[operation] == SIGNIFICANT


class MindMapEngine:
    """
    Owns one mind map's snapshot chain and applies mutations to it.

    Features:
    - Every public mutation is atomic: it either fully applies or raises,
      leaving the present snapshot and history exactly as they were
    - Snapshots are immutable; consumers receive read-only documents
    - Optional invariant check after every mutation (InvariantViolation)

    Args:
        document: Initial document (empty if omitted)
        max_history: Maximum undo depth; None for unbounded
        check_invariants: Verify structural invariants after each mutation
    """

    def __init__(
        self,
        document: Optional[Document] = None,
        max_history: Optional[int] = 100,
        check_invariants: bool = True,
    ):
        self._history = History(document, max_depth=max_history)
        self._check_invariants = check_invariants
        self._on_change_callbacks: list[Callable[[str], None]] = []

    # --- Properties ---

    @property
    def document(self) -> Document:
        """The current snapshot."""
        return self._history.present

    @property
    def history(self) -> History:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[str], None]):
        """Register a callback for document changes. Receives the operation name."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self, operation: str):
        for callback in self._on_change_callbacks:
            try:
                callback(operation)
            except Exception:
                logger.exception("Change callback failed after %s", operation)

    # --- Core apply ---

    def apply(self, operation: str, mutation: Callable[[Document], Document]) -> Document:
        """
        Run a mutation against the present snapshot and install the result.

        Significant operations push the previous present onto the undo stack
        and clear the redo stack; transient ones only replace the present.
        Any exception raised by the mutation or by the invariant check
        propagates with history untouched.
        """
        significant = is_significant(operation)
        current = self._history.present
        result = mutation(current)

        if result is current:
            # No-op (e.g. deleting an absent id): nothing to record
            return current

        if self._check_invariants and significant:
            check_invariants(result)

        if significant:
            self._history.commit(result)
        else:
            self._history.replace(result, keep_origin=operation in HOLDS_ORIGIN)

        logger.debug("Applied %s (%s)", operation, OPERATION_KINDS[operation])
        self._notify_change(operation)
        return result

    # --- Node Operations ---

    def create_node(
        self,
        parent_id: Optional[str],
        position: Any,
        content_kind: str = ContentKind.TEXT.value,
    ) -> str:
        """Create a node and return its id. See operations.create_node."""
        created: list[str] = []

        def mutation(document: Document) -> Document:
            new_document, node_id = operations.create_node(document, parent_id, position, content_kind)
            created.append(node_id)
            return new_document

        self.apply("create_node", mutation)
        return created[0]

    def delete_node(self, node_id: str):
        """Delete a node and its subtree. No-op if absent."""
        self.apply("delete_node", lambda d: operations.delete_node(d, node_id))

    def move_node(self, node_id: str, position: Any, commit: bool = True):
        """
        Move a node.

        commit=False marks a live drag frame (transient); the drag-end call
        with commit=True records one undo step back to the position held
        before the first frame.
        """
        name = "move_node" if commit else "drag_node"
        self.apply(name, lambda d: operations.move_node(d, node_id, position))

    def rename_node(self, node_id: str, label: str):
        self.apply("rename_node", lambda d: operations.rename_node(d, node_id, label))

    def set_node_style(self, node_id: str, style: dict):
        self.apply("set_node_style", lambda d: operations.set_node_style(d, node_id, style))

    def set_node_content(self, node_id: str, content: Any):
        self.apply("set_node_content", lambda d: operations.set_node_content(d, node_id, content))

    # --- Connection Operations ---

    def add_connection(self, source_id: str, target_id: str, curve_kind: str = CurveKind.CURVED.value) -> str:
        """Add a manual connection and return its id."""
        created: list[str] = []

        def mutation(document: Document) -> Document:
            new_document, connection_id = operations.add_connection(document, source_id, target_id, curve_kind)
            created.append(connection_id)
            return new_document

        self.apply("add_connection", mutation)
        return created[0]

    def delete_connection(self, connection_id: str):
        self.apply("delete_connection", lambda d: operations.delete_connection(d, connection_id))

    # --- Document Operations ---

    def set_title(self, title: str):
        self.apply("set_title", lambda d: operations.set_title(d, title))

    def clear(self):
        self.apply("clear", operations.clear)

    # --- View Operations (transient) ---

    def set_zoom(self, zoom: float):
        self.apply("set_zoom", lambda d: operations.set_zoom(d, zoom))

    def zoom_in(self):
        self.apply("zoom_in", operations.zoom_in)

    def zoom_out(self):
        self.apply("zoom_out", operations.zoom_out)

    def reset_view(self):
        self.apply("reset_view", operations.reset_view)

    def set_pan_offset(self, offset: Any):
        self.apply("set_pan_offset", lambda d: operations.set_pan_offset(d, offset))

    # --- Undo/Redo ---

    def undo(self) -> bool:
        """Undo the last significant change. Returns False if nothing to undo."""
        if not self._history.undo():
            return False
        self._notify_change("undo")
        return True

    def redo(self) -> bool:
        """Redo the last undone change. Returns False if nothing to redo."""
        if not self._history.redo():
            return False
        self._notify_change("redo")
        return True

    # --- Persistence ---

    def serialize(self) -> dict:
        """The present snapshot in persisted form (no view state)."""
        return serialize(self._history.present)

    def load(self, blob: Any) -> Document:
        """
        Replace the document with a deserialized snapshot and reset history.

        Raises MalformedDocument on invalid input; the current document and
        history are left untouched in that case.
        """
        document = deserialize(blob)
        self._history.reset(document)
        logger.info("Loaded mind map %r (%d nodes)", document.title, len(document.nodes))
        self._notify_change("load")
        return document

    def new_document(self, title: str = DEFAULT_TITLE) -> Document:
        """Start a new empty document and reset history."""
        document = Document(title=title)
        self._history.reset(document)
        self._notify_change("new")
        return document

    # --- Read-only views ---

    def export_json(self) -> str:
        return to_json(self._history.present)

    def export_png(self, scale: float = 1.0) -> bytes:
        return export_png(self._history.present, scale=scale)

    def export_filename(self, extension: str) -> str:
        return export_filename(self._history.present.title, extension)

    def validate(self) -> list[ValidationIssue]:
        return validate_document(self._history.present)

    def summary(self) -> MindMapSummary:
        return summarize_mindmap(self._history.present)
