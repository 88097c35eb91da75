#!/usr/bin/env python3
"""Mind map CLI - subcommands for the mind-map backend, JSON on stdout."""

import argparse
import json
import os
import re
import sys
import urllib.request
import urllib.error
import urllib.parse
from pathlib import Path

API_BASE = os.environ.get("MINDMAP_API_BASE", "http://127.0.0.1:8765/api")


def _json_out(data):
    print(json.dumps(data))
    sys.exit(0)


def _error_out(message):
    print(json.dumps({"status": "error", "error": message}))
    sys.exit(1)


def _open(method, endpoint, data=None, params=None):
    url = f"{API_BASE}{endpoint}"

    if params:
        filtered = {k: v for k, v in params.items() if v is not None}
        if filtered:
            url = f"{url}?{urllib.parse.urlencode(filtered)}"

    headers = {"Content-Type": "application/json"}
    body = json.dumps(data).encode() if data is not None else None

    req = urllib.request.Request(url, data=body, headers=headers, method=method)

    try:
        return urllib.request.urlopen(req, timeout=30)
    except urllib.error.HTTPError as e:
        error_body = e.read().decode()
        try:
            error_data = json.loads(error_body)
            _error_out(f"API error: {error_data.get('detail', 'Unknown error')}")
        except json.JSONDecodeError:
            _error_out(f"API error ({e.code}): {error_body}")
    except urllib.error.URLError as e:
        _error_out(f"Connection failed: {e.reason}. Is mindmap-backend running?")


def _api_request(method, endpoint, data=None, params=None):
    """Make a request to the mind-map backend and decode the JSON reply."""
    with _open(method, endpoint, data=data, params=params) as response:
        return json.loads(response.read().decode())


def _api_download(endpoint, directory, params=None):
    """Download an export into directory, keeping the server's file name."""
    with _open("GET", endpoint, params=params) as response:
        disposition = response.headers.get("Content-Disposition", "")
        match = re.search(r'filename="([^"]+)"', disposition)
        filename = match.group(1) if match else "mind-map"
        path = Path(directory).expanduser() / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(response.read())
    return path


# ── Mind map ─────────────────────────────────────────────────────────────────

def cmd_get(args):
    _json_out(_api_request("GET", "/mindmap"))


def cmd_new(args):
    _json_out(_api_request("POST", "/mindmap/new", params={"title": args.title}))


def cmd_open(args):
    _json_out(_api_request("POST", "/mindmap/open", data={"file_path": args.file_path}))


def cmd_save(args):
    _json_out(_api_request("POST", "/mindmap/save", data={"file_path": args.file_path}))


def cmd_title(args):
    _json_out(_api_request("PATCH", "/mindmap", data={"title": args.title}))


def cmd_clear(args):
    _json_out(_api_request("POST", "/mindmap/clear"))


# ── Nodes ────────────────────────────────────────────────────────────────────

def cmd_add_node(args):
    result = _api_request("POST", "/nodes", data={
        "parent_id": args.parent_id,
        "x": args.x,
        "y": args.y,
        "content_kind": args.content_kind,
    })
    if args.label is not None and result.get("success"):
        result = _api_request("PATCH", f"/nodes/{result['node']['id']}", data={"label": args.label})
    _json_out(result)


def cmd_move_node(args):
    _json_out(_api_request("POST", f"/nodes/{args.node_id}/move", data={"x": args.x, "y": args.y}))


def cmd_rename_node(args):
    _json_out(_api_request("PATCH", f"/nodes/{args.node_id}", data={"label": args.label}))


def cmd_style_node(args):
    updates = {}
    for field in ("color", "background_color", "font_size", "font_weight",
                  "border_color", "border_width", "border_radius"):
        value = getattr(args, field)
        if value is not None:
            updates[field] = value
    _json_out(_api_request("PATCH", f"/nodes/{args.node_id}/style", data=updates))


def cmd_set_content(args):
    _json_out(_api_request("PUT", f"/nodes/{args.node_id}/content", data={
        "kind": args.kind,
        "value": args.value,
    }))


def cmd_delete_node(args):
    _json_out(_api_request("DELETE", f"/nodes/{args.node_id}"))


# ── Connections ──────────────────────────────────────────────────────────────

def cmd_connect(args):
    _json_out(_api_request("POST", "/connections", data={
        "source_id": args.source_id,
        "target_id": args.target_id,
        "curve_kind": args.curve_kind,
    }))


def cmd_disconnect(args):
    _json_out(_api_request("DELETE", f"/connections/{args.connection_id}"))


# ── View ─────────────────────────────────────────────────────────────────────

def cmd_zoom_in(args):
    _json_out(_api_request("POST", "/view/zoom-in"))


def cmd_zoom_out(args):
    _json_out(_api_request("POST", "/view/zoom-out"))


def cmd_reset_view(args):
    _json_out(_api_request("POST", "/view/reset"))


# ── History ──────────────────────────────────────────────────────────────────

def cmd_undo(args):
    _json_out(_api_request("POST", "/undo"))


def cmd_redo(args):
    _json_out(_api_request("POST", "/redo"))


# ── Export ───────────────────────────────────────────────────────────────────

def cmd_export_json(args):
    path = _api_download("/export/json", args.directory)
    _json_out({"success": True, "path": str(path)})


def cmd_export_png(args):
    path = _api_download("/export/png", args.directory, params={"scale": args.scale})
    _json_out({"success": True, "path": str(path)})


# ── Analysis ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    _json_out(_api_request("GET", "/mindmap/validate"))


def cmd_summary(args):
    _json_out(_api_request("GET", "/mindmap/summary"))


# ── Main ─────────────────────────────────────────────────────────────────────

COMMANDS = {
    "get": cmd_get,
    "new": cmd_new,
    "open": cmd_open,
    "save": cmd_save,
    "title": cmd_title,
    "clear": cmd_clear,
    "add-node": cmd_add_node,
    "move-node": cmd_move_node,
    "rename-node": cmd_rename_node,
    "style-node": cmd_style_node,
    "set-content": cmd_set_content,
    "delete-node": cmd_delete_node,
    "connect": cmd_connect,
    "disconnect": cmd_disconnect,
    "zoom-in": cmd_zoom_in,
    "zoom-out": cmd_zoom_out,
    "reset-view": cmd_reset_view,
    "undo": cmd_undo,
    "redo": cmd_redo,
    "export-json": cmd_export_json,
    "export-png": cmd_export_png,
    "validate": cmd_validate,
    "summary": cmd_summary,
}


def build_parser():
    parser = argparse.ArgumentParser(prog="mindmap", description="Mind map CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Mind map
    sub.add_parser("get")

    p = sub.add_parser("new")
    p.add_argument("--title", default=None)

    p = sub.add_parser("open")
    p.add_argument("--file-path", required=True)

    p = sub.add_parser("save")
    p.add_argument("--file-path", default=None)

    p = sub.add_parser("title")
    p.add_argument("--title", required=True)

    sub.add_parser("clear")

    # Nodes
    p = sub.add_parser("add-node")
    p.add_argument("--parent-id", default=None)
    p.add_argument("--x", type=float, default=0)
    p.add_argument("--y", type=float, default=0)
    p.add_argument("--content-kind", choices=["text", "image", "link"], default="text")
    p.add_argument("--label", default=None)

    p = sub.add_parser("move-node")
    p.add_argument("--node-id", required=True)
    p.add_argument("--x", type=float, required=True)
    p.add_argument("--y", type=float, required=True)

    p = sub.add_parser("rename-node")
    p.add_argument("--node-id", required=True)
    p.add_argument("--label", required=True)

    p = sub.add_parser("style-node")
    p.add_argument("--node-id", required=True)
    p.add_argument("--color", default=None)
    p.add_argument("--background-color", default=None)
    p.add_argument("--font-size", type=float, default=None)
    p.add_argument("--font-weight", default=None)
    p.add_argument("--border-color", default=None)
    p.add_argument("--border-width", type=float, default=None)
    p.add_argument("--border-radius", type=float, default=None)

    p = sub.add_parser("set-content")
    p.add_argument("--node-id", required=True)
    p.add_argument("--kind", choices=["text", "image", "link"], default="text")
    p.add_argument("--value", default="")

    p = sub.add_parser("delete-node")
    p.add_argument("--node-id", required=True)

    # Connections
    p = sub.add_parser("connect")
    p.add_argument("--source-id", required=True)
    p.add_argument("--target-id", required=True)
    p.add_argument("--curve-kind", choices=["straight", "curved"], default="curved")

    p = sub.add_parser("disconnect")
    p.add_argument("--connection-id", required=True)

    # View
    sub.add_parser("zoom-in")
    sub.add_parser("zoom-out")
    sub.add_parser("reset-view")

    # History
    sub.add_parser("undo")
    sub.add_parser("redo")

    # Export
    p = sub.add_parser("export-json")
    p.add_argument("--directory", default=os.path.expanduser("~/mindmaps"))

    p = sub.add_parser("export-png")
    p.add_argument("--directory", default=os.path.expanduser("~/mindmaps"))
    p.add_argument("--scale", type=float, default=1.0)

    # Analysis
    sub.add_parser("validate")
    sub.add_parser("summary")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
