#!/usr/bin/env python3
"""
Mind Map MCP Server

Provides MCP tools for AI agents to interact with the mind-map backend.
All changes are immediately reflected in the frontend via WebSocket updates.
"""

import httpx
from mcp.server.fastmcp import FastMCP
from typing import Optional
import json
import os

# Backend API URL
API_BASE = os.environ.get("MINDMAP_API_BASE", "http://127.0.0.1:8765/api")

# Create MCP server
mcp = FastMCP("mindmap")


# --- HTTP Client Helper ---

def api_request(method: str, endpoint: str, **kwargs) -> dict:
    """Make a request to the mind-map backend."""
    url = f"{API_BASE}{endpoint}"
    with httpx.Client(timeout=30.0) as client:
        response = client.request(
            method,
            url,
            json=kwargs.get("json"),
            params=kwargs.get("params"),
        )

        if response.status_code >= 400:
            error = response.json().get("detail", "Unknown error")
            raise RuntimeError(f"API error: {error}")

        return response.json()


def _dump(result: dict) -> str:
    return json.dumps(result, indent=2)


# ============================================================================
# DOCUMENT TOOLS
# ============================================================================

@mcp.tool()
def mindmap_get_current() -> str:
    """
    Get the full current mind-map state.

    Returns every node (with parentId/childIds), every connection, the root
    node id, the title and the current view. Use this before making changes.
    """
    return _dump(api_request("GET", "/mindmap"))


@mcp.tool()
def mindmap_new(title: Optional[str] = None) -> str:
    """
    Start a new empty mind map. Undo history is reset.

    Args:
        title: Title for the new mind map
    """
    return _dump(api_request("POST", "/mindmap/new", params={"title": title} if title else None))


@mcp.tool()
def mindmap_open(file_path: str) -> str:
    """
    Load a mind map from a JSON file as the active mind map.

    Args:
        file_path: Full path to the mind-map JSON file
    """
    return _dump(api_request("POST", "/mindmap/open", json={"file_path": file_path}))


@mcp.tool()
def mindmap_save(file_path: Optional[str] = None) -> str:
    """
    Save the current mind map to a file.

    Args:
        file_path: Path to save to (uses current path if not specified)
    """
    return _dump(api_request("POST", "/mindmap/save", json={"file_path": file_path}))


@mcp.tool()
def mindmap_set_title(title: str) -> str:
    """Rename the mind map."""
    return _dump(api_request("PATCH", "/mindmap", json={"title": title}))


# ============================================================================
# NODE TOOLS
# ============================================================================

@mcp.tool()
def mindmap_add_node(
    parent_id: Optional[str] = None,
    x: float = 0,
    y: float = 0,
    content_kind: str = "text",
    label: Optional[str] = None,
) -> str:
    """
    Create a new node.

    Args:
        parent_id: Parent node ID. If omitted, the node becomes the root of an
            empty mind map, or a child of the existing root
        x: X coordinate in document space
        y: Y coordinate in document space
        content_kind: text, image or link
        label: Display text (defaults to "New Node"/"New Image"/"New Link")

    Returns the created node with its generated ID. A connection from the
    parent is created automatically.
    """
    result = api_request("POST", "/nodes", json={
        "parent_id": parent_id,
        "x": x,
        "y": y,
        "content_kind": content_kind,
    })
    if label is not None:
        result = api_request("PATCH", f"/nodes/{result['node']['id']}", json={"label": label})
    return _dump(result)


@mcp.tool()
def mindmap_rename_node(node_id: str, label: str) -> str:
    """Replace a node's label."""
    return _dump(api_request("PATCH", f"/nodes/{node_id}", json={"label": label}))


@mcp.tool()
def mindmap_move_node(node_id: str, x: float, y: float) -> str:
    """Move a node to a new document position."""
    return _dump(api_request("POST", f"/nodes/{node_id}/move", json={"x": x, "y": y}))


@mcp.tool()
def mindmap_style_node(
    node_id: str,
    color: Optional[str] = None,
    background_color: Optional[str] = None,
    font_size: Optional[float] = None,
    font_weight: Optional[str] = None,
    border_color: Optional[str] = None,
    border_width: Optional[float] = None,
    border_radius: Optional[float] = None,
) -> str:
    """
    Update a node's style. Only provided fields are changed.

    Args:
        node_id: ID of the node to style
        color: Text color (hex)
        background_color: Fill color (hex)
        font_size: Font size in points
        font_weight: normal or bold
        border_color: Border color (hex)
        border_width: Border width in pixels
        border_radius: Corner radius in pixels
    """
    updates = {
        "color": color,
        "background_color": background_color,
        "font_size": font_size,
        "font_weight": font_weight,
        "border_color": border_color,
        "border_width": border_width,
        "border_radius": border_radius,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    return _dump(api_request("PATCH", f"/nodes/{node_id}/style", json=updates))


@mcp.tool()
def mindmap_set_content(node_id: str, kind: str = "text", value: str = "") -> str:
    """
    Replace a node's content.

    Args:
        node_id: ID of the node
        kind: text, image or link
        value: Text, image URL or link URL
    """
    return _dump(api_request("PUT", f"/nodes/{node_id}/content", json={"kind": kind, "value": value}))


@mcp.tool()
def mindmap_delete_node(node_id: str) -> str:
    """
    Delete a node together with its whole subtree and every connection
    touching a deleted node. Deleting the root empties the mind map.
    """
    return _dump(api_request("DELETE", f"/nodes/{node_id}"))


# ============================================================================
# CONNECTION TOOLS
# ============================================================================

@mcp.tool()
def mindmap_connect(source_id: str, target_id: str, curve_kind: str = "curved") -> str:
    """
    Draw an extra connection between two nodes.

    This does not change the tree: parent/child structure only comes from
    mindmap_add_node. Cross-links and cycles are allowed.

    Args:
        source_id: Source node ID
        target_id: Target node ID
        curve_kind: straight or curved
    """
    return _dump(api_request("POST", "/connections", json={
        "source_id": source_id,
        "target_id": target_id,
        "curve_kind": curve_kind,
    }))


@mcp.tool()
def mindmap_disconnect(connection_id: str) -> str:
    """Remove a connection."""
    return _dump(api_request("DELETE", f"/connections/{connection_id}"))


# ============================================================================
# HISTORY & ANALYSIS TOOLS
# ============================================================================

@mcp.tool()
def mindmap_undo() -> str:
    """Undo the last change (view changes like zoom are not undo steps)."""
    return _dump(api_request("POST", "/undo"))


@mcp.tool()
def mindmap_redo() -> str:
    """Redo the last undone change."""
    return _dump(api_request("POST", "/redo"))


@mcp.tool()
def mindmap_validate() -> str:
    """Check the mind map for structural issues (errors, warnings, info)."""
    return _dump(api_request("GET", "/mindmap/validate"))


@mcp.tool()
def mindmap_summarize() -> str:
    """
    Summarize the mind map: node counts by content kind, tree depth, leaves,
    tree vs. manual connections and most connected nodes.
    """
    return _dump(api_request("GET", "/mindmap/summary"))


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    mcp.run()
