"""
Error taxonomy for mind-map document operations.

- NotFound: a referenced node or connection does not exist
- InvariantViolation: a mutation produced a structurally inconsistent document
- MalformedDocument: a persisted snapshot failed validation on load
"""


class MindMapError(Exception):
    """Base class for all mind-map engine errors."""


class NotFound(MindMapError):
    """A node or connection id was not present in the document.

    Attributes:
        kind: "node" or "connection"
        entity_id: The id that was looked up
    """

    def __init__(self, kind: str, entity_id: str | None):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} not found: {entity_id}")


class InvariantViolation(MindMapError):
    """A document failed its structural invariant checks after a mutation."""

    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__("Document invariants violated: " + "; ".join(issues))


class MalformedDocument(MindMapError):
    """A serialized document could not be installed.

    Attributes:
        issues: Human-readable descriptions of each problem found
    """

    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__("Malformed document: " + "; ".join(issues))
