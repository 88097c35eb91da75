"""
History - linear undo/redo over immutable document snapshots.

The history system works via snapshots:
- `past` holds earlier snapshots, oldest first
- `present` is the current snapshot
- `future` holds undone snapshots, nearest redo first

A significant change pushes the previous present onto `past` and clears
`future` (a new action invalidates the redo stack). A transient change replaces
the present without touching either stack. A transient change made with
keep_origin (a live drag frame) also remembers the snapshot from before the
first such frame; the next commit records that origin, so a whole drag undoes
in one step.
"""

from collections import deque
from typing import Optional

from .models import Document


class History:
    """
    Past/present/future stack of Document snapshots.

    Args:
        present: The initial snapshot (an empty document if omitted)
        max_depth: Maximum number of undo steps kept; None for unbounded
    """

    def __init__(self, present: Optional[Document] = None, max_depth: Optional[int] = 100):
        self._past: deque[Document] = deque()
        self._future: deque[Document] = deque()
        self._present = present if present is not None else Document()
        self._max_depth = max_depth
        self._origin: Optional[Document] = None  # Present before a pending drag

    # --- Properties ---

    @property
    def present(self) -> Document:
        """The current snapshot."""
        return self._present

    @property
    def past(self) -> tuple[Document, ...]:
        return tuple(self._past)

    @property
    def future(self) -> tuple[Document, ...]:
        return tuple(self._future)

    @property
    def max_depth(self) -> Optional[int]:
        return self._max_depth

    @property
    def has_pending_origin(self) -> bool:
        """Whether transient frames are waiting for a commit."""
        return self._origin is not None

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._future) > 0

    # --- Mutation ---

    def _push_past(self, snapshot: Document):
        self._past.append(snapshot)
        # Trim history if too long
        if self._max_depth is not None:
            while len(self._past) > self._max_depth:
                self._past.popleft()

    def commit(self, document: Document):
        """Install a significant change: record the previous present (or pending origin), drop redo state."""
        self._push_past(self._origin if self._origin is not None else self._present)
        self._origin = None
        self._future.clear()
        self._present = document

    def replace(self, document: Document, keep_origin: bool = False):
        """
        Install a transient change without recording it.

        keep_origin=True remembers the current present (once) as the
        snapshot the next commit records.
        """
        if keep_origin and self._origin is None:
            self._origin = self._present
        self._present = document

    def undo(self) -> bool:
        """Step back one snapshot. Returns False if there was nothing to undo."""
        if not self._past:
            return False
        self._origin = None
        self._future.appendleft(self._present)
        self._present = self._past.pop()
        return True

    def redo(self) -> bool:
        """Step forward one snapshot. Returns False if there was nothing to redo."""
        if not self._future:
            return False
        self._origin = None
        self._push_past(self._present)
        self._present = self._future.popleft()
        return True

    def reset(self, document: Optional[Document] = None):
        """Install a new present and forget all history."""
        self._past.clear()
        self._origin = None
        self._future.clear()
        self._present = document if document is not None else Document()
