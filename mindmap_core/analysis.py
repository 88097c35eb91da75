"""
Mind-map analysis - Structural summaries of a document snapshot.

All functions here are read-only: they never build a new document.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Document


@dataclass
class NodeConnectionInfo:
    """Connection information for a single node."""
    node_id: str
    label: str
    incoming: int = 0   # Connections pointing to this node
    outgoing: int = 0   # Connections pointing from this node

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class MindMapSummary:
    """Complete summary of a mind map's structure."""
    title: str
    total_nodes: int
    total_connections: int
    tree_connections: int
    manual_connections: int
    nodes_by_content: dict[str, int]
    depth: int
    leaf_count: int
    most_connected_nodes: list[NodeConnectionInfo]
    cycle_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "total_nodes": self.total_nodes,
            "total_connections": self.total_connections,
            "tree_connections": self.tree_connections,
            "manual_connections": self.manual_connections,
            "nodes_by_content": self.nodes_by_content,
            "depth": self.depth,
            "leaf_count": self.leaf_count,
            "most_connected_nodes": [
                {
                    "id": n.node_id,
                    "label": n.label,
                    "connections": n.total,
                    "incoming": n.incoming,
                    "outgoing": n.outgoing
                }
                for n in self.most_connected_nodes
            ],
            "cycle_count": self.cycle_count
        }


def tree_depth(document: "Document") -> int:
    """Number of levels in the tree (0 for an empty document, 1 for a lone root)."""
    if document.root_node_id not in document.nodes:
        return 0

    depth = 0
    level = [document.root_node_id]
    while level:
        depth += 1
        level = [cid for nid in level for cid in document.nodes[nid].child_ids if cid in document.nodes]
    return depth


def calculate_node_connections(document: "Document") -> dict[str, NodeConnectionInfo]:
    """
    Calculate connection counts for all nodes.

    Args:
        document: The document to analyze

    Returns:
        Dictionary mapping node_id to NodeConnectionInfo
    """
    connections: dict[str, NodeConnectionInfo] = {}
    for node in document.nodes.values():
        connections[node.id] = NodeConnectionInfo(
            node_id=node.id,
            label=node.label
        )

    for connection in document.connections.values():
        if connection.source_id in connections:
            connections[connection.source_id].outgoing += 1
        if connection.target_id in connections:
            connections[connection.target_id].incoming += 1

    return connections


def find_cycles(document: "Document") -> list[list[str]]:
    """
    Find all cycles formed by connections using DFS.

    The parent/child tree never has cycles; manual connections can add them.

    Returns:
        List of cycles, where each cycle is a list of node IDs
    """
    adjacency: dict[str, list[str]] = defaultdict(list)
    for connection in document.connections.values():
        adjacency[connection.source_id].append(connection.target_id)

    cycles: list[list[str]] = []

    def dfs(start: str, current: str, path: list[str], visited: set[str]):
        for neighbor in adjacency[current]:
            if neighbor == start:
                cycles.append(path.copy() + [start])
            elif neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                dfs(start, neighbor, path, visited)
                path.pop()
                visited.remove(neighbor)

    for node_id in document.nodes:
        dfs(node_id, node_id, [node_id], {node_id})

    # Remove duplicate cycles (same cycle starting from different nodes)
    unique_cycles: list[list[str]] = []
    seen: set[frozenset[str]] = set()
    for cycle in cycles:
        cycle_set = frozenset(cycle[:-1])
        if cycle_set not in seen:
            seen.add(cycle_set)
            unique_cycles.append(cycle)

    return unique_cycles


def summarize_mindmap(document: "Document", top_n: int = 5) -> MindMapSummary:
    """
    Generate a summary of a mind map.

    Args:
        document: The document to summarize
        top_n: Number of top connected nodes to include

    Returns:
        MindMapSummary object with all analysis results
    """
    nodes = document.nodes

    content_counts: dict[str, int] = defaultdict(int)
    for node in nodes.values():
        content_counts[node.content.kind] += 1

    tree_pairs = {(n.parent_id, n.id) for n in nodes.values() if n.parent_id is not None}
    tree_connections = sum(
        1 for c in document.connections.values() if (c.source_id, c.target_id) in tree_pairs
    )

    connections = calculate_node_connections(document)
    sorted_by_connections = sorted(
        connections.values(),
        key=lambda x: x.total,
        reverse=True
    )
    most_connected = [n for n in sorted_by_connections[:top_n] if n.total > 0]

    return MindMapSummary(
        title=document.title,
        total_nodes=len(nodes),
        total_connections=len(document.connections),
        tree_connections=tree_connections,
        manual_connections=len(document.connections) - tree_connections,
        nodes_by_content=dict(content_counts),
        depth=tree_depth(document),
        leaf_count=sum(1 for n in nodes.values() if not n.child_ids),
        most_connected_nodes=most_connected,
        cycle_count=len(find_cycles(document))
    )
