"""
Mind Map Manager - File persistence around a MindMapEngine.

This module implements:
- Startup load of the saved mind map from the storage file
- JSON file persistence (save / save as / open)
- Dirty tracking and optional autosave after significant changes
- Export of JSON and PNG files named after the document title

The engine owns the document and its history; the manager only moves
serialized snapshots to and from disk.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Callable

from mindmap_core import MindMapEngine, MalformedDocument, Document, is_significant

logger = logging.getLogger(__name__)


class MindMapManager:
    """
    Manages one engine's persistence.

    Args:
        engine: The engine whose document is persisted
        storage_path: Default file the mind map is saved to and loaded from
        autosave: Save to storage_path after every significant change
    """

    def __init__(
        self,
        engine: Optional[MindMapEngine] = None,
        storage_path: Optional[str | Path] = None,
        autosave: bool = False,
    ):
        self.engine = engine if engine is not None else MindMapEngine()
        self._file_path: Optional[Path] = Path(storage_path) if storage_path else None
        self._autosave = autosave
        self._dirty = False
        self._reading_file = False  # Set while open/load_saved install a file
        self._on_save_callbacks: list[Callable] = []  # Called after successful save
        self.engine.on_change(self._on_engine_change)

    # --- Properties ---

    @property
    def file_path(self) -> Optional[Path]:
        """Get the current file path."""
        return self._file_path

    @property
    def is_dirty(self) -> bool:
        """Check if there are unsaved changes."""
        return self._dirty

    @property
    def document(self) -> Document:
        return self.engine.document

    # --- Callbacks ---

    def _on_engine_change(self, operation: str):
        # A document read from disk matches that file; anything else is unsaved
        if self._reading_file:
            return
        if operation in ("undo", "redo", "load", "new") or is_significant(operation):
            self._dirty = True
            if self._autosave and self._file_path is not None:
                self.save()

    def on_save(self, callback: Callable):
        """Register a callback for saves.

        Callback receives (path: Path, info: dict) where info contains:
        - title: document title
        - node_count: number of nodes
        - connection_count: number of connections
        """
        self._on_save_callbacks.append(callback)

    def _notify_save(self, path: Path):
        if not self._on_save_callbacks:
            return

        document = self.engine.document
        info = {
            "title": document.title,
            "node_count": len(document.nodes),
            "connection_count": len(document.connections),
        }

        for callback in self._on_save_callbacks:
            try:
                callback(path, info)
            except Exception:
                logger.exception("Save callback failed for %s", path)

    # --- File Operations ---

    def load_saved(self) -> Document:
        """
        Load the mind map stored at the default path, if any.

        A missing file leaves the engine's empty document in place; an
        unreadable or malformed file is logged and ignored.
        """
        if self._file_path is None or not self._file_path.exists():
            return self.engine.document

        try:
            with open(self._file_path, 'r') as f:
                data = json.load(f)
            self._install(data)
        except (OSError, json.JSONDecodeError, MalformedDocument) as e:
            logger.warning("Error loading saved mind map from %s: %s", self._file_path, e)

        return self.engine.document

    def new_mindmap(self, title: Optional[str] = None) -> Document:
        """Start a new empty mind map. It counts as an unsaved change."""
        return self.engine.new_document(title) if title else self.engine.new_document()

    def open_mindmap(self, file_path: str | Path) -> Document:
        """
        Open a mind map from a JSON file.

        Raises FileNotFoundError if the file does not exist and
        MalformedDocument if it cannot be installed.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Mind map file not found: {path}")

        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedDocument([f"Invalid JSON: {e}"]) from e

        document = self._install(data)
        self._file_path = path
        return document

    def _install(self, data) -> Document:
        self._reading_file = True
        try:
            document = self.engine.load(data)
        finally:
            self._reading_file = False
        self._dirty = False
        return document

    def save(self, file_path: Optional[str | Path] = None) -> Path:
        """
        Save the mind map to a JSON file.

        If file_path is provided, save to that path (Save As).
        Otherwise, save to the current file_path.
        """
        if file_path:
            path = Path(file_path)
        elif self._file_path:
            path = self._file_path
        else:
            raise ValueError("No file path specified and no current file path")

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(self.engine.serialize(), f, indent=2)

        self._file_path = path
        self._dirty = False
        logger.debug("Saved mind map to %s", path)

        self._notify_save(path)
        return path

    # --- Export ---

    def export_json(self, directory: str | Path) -> Path:
        """Write '<title or mind-map>.json' into directory."""
        path = Path(directory) / self.engine.export_filename("json")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.engine.export_json())
        return path

    def export_png(self, directory: str | Path, scale: float = 1.0) -> Path:
        """Write '<title or mind-map>.png' into directory."""
        path = Path(directory) / self.engine.export_filename("png")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.engine.export_png(scale=scale))
        return path

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        document = self.engine.document
        return {
            "mindmap": self.engine.serialize(),
            "view": document.view.model_dump(mode="json", by_alias=True),
            "file_path": str(self._file_path) if self._file_path else None,
            "is_dirty": self._dirty,
            "can_undo": self.engine.can_undo,
            "can_redo": self.engine.can_redo,
        }
