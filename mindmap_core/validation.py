"""
Mind-map validation - Check documents for structural issues.

ERROR issues are invariant violations: a document carrying any of them must
never be installed. WARNING and INFO issues describe legal but possibly
unintended structure (manual connections are allowed to be loose).
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import InvariantViolation

if TYPE_CHECKING:
    from .models import Document


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a document."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    connection_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.node_id:
            result["node_id"] = self.node_id
        if self.connection_id:
            result["connection_id"] = self.connection_id
        return result


def _check_root(document: "Document", issues: list[ValidationIssue]):
    nodes = document.nodes
    root_id = document.root_node_id

    roots = [n.id for n in nodes.values() if n.kind == "root"]

    if root_id is None:
        if nodes:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message="Document has nodes but no root node"
            ))
        return

    root = nodes.get(root_id)
    if root is None:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message=f"Root node id references non-existent node: {root_id}",
            node_id=root_id
        ))
        return

    if root.kind != "root":
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message="Root node id names a node that is not of kind 'root'",
            node_id=root_id
        ))
    if root.parent_id is not None:
        issues.append(ValidationIssue(
            severity=IssueSeverity.ERROR,
            message=f"Root node has a parent: {root.parent_id}",
            node_id=root_id
        ))
    for other in roots:
        if other != root_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message="Second node of kind 'root'",
                node_id=other
            ))


def _check_tree(document: "Document", issues: list[ValidationIssue]):
    nodes = document.nodes

    for key, node in nodes.items():
        if key != node.id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Node stored under mismatched key: {key}",
                node_id=node.id
            ))

        if node.id != document.root_node_id:
            if node.kind != "child":
                continue  # reported by _check_root
            if node.parent_id is None:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message="Non-root node has no parent",
                    node_id=node.id
                ))
            elif node.parent_id not in nodes:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Node references non-existent parent: {node.parent_id}",
                    node_id=node.id
                ))
            elif node.id not in nodes[node.parent_id].child_ids:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Node missing from its parent's children: {node.parent_id}",
                    node_id=node.id
                ))

        seen: set[str] = set()
        for child_id in node.child_ids:
            if child_id in seen:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Duplicate child id: {child_id}",
                    node_id=node.id
                ))
                continue
            seen.add(child_id)
            child = nodes.get(child_id)
            if child is None:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Child id references non-existent node: {child_id}",
                    node_id=node.id
                ))
            elif child.parent_id != node.id:
                issues.append(ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Child {child_id} names a different parent: {child.parent_id}",
                    node_id=node.id
                ))

    # Every node must hang off the root (also rules out parent cycles)
    if document.root_node_id in nodes:
        reachable = {document.root_node_id, *document.descendants(document.root_node_id)}
        unreachable = [nid for nid in nodes if nid not in reachable]
        if unreachable:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Nodes not reachable from root: {', '.join(sorted(unreachable))}"
            ))


def _check_connections(document: "Document", issues: list[ValidationIssue]):
    nodes = document.nodes
    seen_pairs: set[tuple[str, str]] = set()

    for key, connection in document.connections.items():
        if key != connection.id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection stored under mismatched key: {key}",
                connection_id=connection.id
            ))
        if connection.source_id not in nodes:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent source node: {connection.source_id}",
                connection_id=connection.id
            ))
        if connection.target_id not in nodes:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent target node: {connection.target_id}",
                connection_id=connection.id
            ))
        if connection.source_id == connection.target_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing connection (node points to itself)",
                connection_id=connection.id,
                node_id=connection.source_id
            ))

        pair = (connection.source_id, connection.target_id)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate connection from {connection.source_id} to {connection.target_id}",
                connection_id=connection.id
            ))
        else:
            seen_pairs.add(pair)

    # Parent/child links without a drawn connection are legal (the user may delete it)
    for node in nodes.values():
        if node.parent_id in nodes and (node.parent_id, node.id) not in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message=f"No connection drawn from parent {node.parent_id}",
                node_id=node.id
            ))


def validate_document(document: "Document") -> list[ValidationIssue]:
    """
    Validate a document and return a list of issues.

    Checks for:
    - Root presence and uniqueness - ERROR
    - Dangling parent/child references, asymmetric parent/child links - ERROR
    - Nodes unreachable from the root - ERROR
    - Invalid connection references (source/target doesn't exist) - ERROR
    - Self-referencing and duplicate connections - WARNING
    - Parent/child pairs without a connection - INFO
    - Empty document - INFO

    Args:
        document: The document to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    if not document.nodes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Mind map has no nodes"
        ))

    _check_root(document, issues)
    _check_tree(document, issues)
    _check_connections(document, issues)

    return issues


def invariant_errors(document: "Document") -> list[str]:
    """Messages of every ERROR-level issue in the document."""
    return [i.message for i in validate_document(document) if i.severity == IssueSeverity.ERROR]


def check_invariants(document: "Document"):
    """Raise InvariantViolation if the document breaks any structural invariant."""
    errors = invariant_errors(document)
    if errors:
        raise InvariantViolation(errors)


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
