"""
Mind Map Backend - FastAPI Application

This is the main entry point for the mind-map backend.
It provides:
- REST API for mind-map operations (nodes, connections, view, file ops, undo/redo)
- JSON and PNG export downloads
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Query, Request, Body
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from mindmap_core import (
    MindMapEngine, NotFound, MalformedDocument, InvariantViolation,
    CreateNodeRequest, UpdateNodeRequest, MoveNodeRequest, UpdateStyleRequest,
    SetContentRequest, CreateConnectionRequest, MindMapInfoRequest,
    ZoomRequest, PanRequest, ContentKind, CurveKind,
    validation_summary,
)

from . import config
from .manager import MindMapManager
from .websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)


class OpenMindMapRequest(BaseModel):
    file_path: str


class SaveMindMapRequest(BaseModel):
    file_path: Optional[str] = None


def _node_json(manager: MindMapManager, node_id: str) -> dict:
    return manager.document.nodes[node_id].model_dump(mode="json", by_alias=True)


def create_app(
    manager: Optional[MindMapManager] = None,
    ws_manager: Optional[WebSocketManager] = None,
) -> FastAPI:
    """
    Build the API around an explicitly constructed manager.

    Each app owns its manager; nothing is shared between apps.
    """
    if manager is None:
        manager = MindMapManager(
            engine=MindMapEngine(max_history=config.MAX_HISTORY),
            storage_path=config.STORAGE_PATH,
            autosave=config.AUTOSAVE,
        )
    if ws_manager is None:
        ws_manager = WebSocketManager()

    engine = manager.engine

    # --- Async change notification ---
    # Bridge between sync engine callbacks and async WebSocket broadcasts
    change_event = asyncio.Event()
    last_operation: list[Optional[str]] = [None]

    def on_mindmap_change(operation: str):
        """Callback for engine changes - sets event for async handler."""
        last_operation[0] = operation
        change_event.set()

    async def change_broadcaster():
        """Background task that broadcasts changes to WebSocket clients."""
        while True:
            await change_event.wait()
            change_event.clear()
            await ws_manager.notify_mindmap_updated(last_operation[0])

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan handler for startup/shutdown tasks."""
        manager.load_saved()
        engine.on_change(on_mindmap_change)

        broadcaster_task = asyncio.create_task(change_broadcaster())

        yield

        broadcaster_task.cancel()
        try:
            await broadcaster_task
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title="Mind Map API",
        description="Backend API for the mind-map editor",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.manager = manager
    app.state.ws_manager = ws_manager

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error mapping ---

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(MalformedDocument)
    async def malformed_handler(request: Request, exc: MalformedDocument):
        return JSONResponse(status_code=400, content={"detail": str(exc), "issues": exc.issues})

    @app.exception_handler(InvariantViolation)
    async def invariant_handler(request: Request, exc: InvariantViolation):
        logger.error("Rejected mutation: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # --- Health Check ---

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "connections": ws_manager.connection_count}

    # --- Mind Map State ---

    @app.get("/api/mindmap")
    async def get_mindmap():
        """Get the current mind-map state."""
        return manager.get_state()

    @app.patch("/api/mindmap")
    async def update_mindmap(request: MindMapInfoRequest):
        """Update the mind-map title."""
        engine.set_title(request.title)
        return {"success": True, "title": engine.document.title}

    @app.post("/api/mindmap/clear")
    async def clear_mindmap():
        """Remove every node and connection."""
        engine.clear()
        return {"success": True, "mindmap": engine.serialize()}

    # --- File Operations ---

    @app.post("/api/mindmap/new")
    async def new_mindmap(title: Optional[str] = Query(default=None)):
        """Create a new empty mind map."""
        manager.new_mindmap(title)
        return {"success": True, "mindmap": engine.serialize()}

    @app.post("/api/mindmap/open")
    async def open_mindmap(request: OpenMindMapRequest):
        """Open a mind map from a JSON file."""
        try:
            manager.open_mindmap(request.file_path)
        except FileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {
            "success": True,
            "mindmap": engine.serialize(),
            "file_path": str(manager.file_path)
        }

    @app.post("/api/mindmap/save")
    async def save_mindmap(request: SaveMindMapRequest):
        """Save the mind map to a JSON file."""
        try:
            path = manager.save(request.file_path)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except OSError as e:
            raise HTTPException(status_code=500, detail=f"Failed to save: {e}")
        return {"success": True, "file_path": str(path)}

    @app.post("/api/mindmap/load")
    async def load_mindmap(blob: Any = Body(...)):
        """Replace the mind map with a posted snapshot (history is reset)."""
        engine.load(blob)
        return {"success": True, "mindmap": engine.serialize()}

    # --- Undo/Redo ---

    @app.post("/api/undo")
    async def undo():
        """Undo the last action."""
        if engine.undo():
            return {"success": True, "mindmap": engine.serialize()}
        return {"success": False, "message": "Nothing to undo"}

    @app.post("/api/redo")
    async def redo():
        """Redo the last undone action."""
        if engine.redo():
            return {"success": True, "mindmap": engine.serialize()}
        return {"success": False, "message": "Nothing to redo"}

    # --- Node Operations ---

    @app.post("/api/nodes")
    async def create_node(request: CreateNodeRequest):
        """Create a new node (the root if the mind map is empty)."""
        node_id = engine.create_node(
            request.parent_id,
            (request.x, request.y),
            ContentKind(request.content_kind).value,
        )
        return {"success": True, "node": _node_json(manager, node_id)}

    @app.get("/api/nodes/{node_id}")
    async def get_node(node_id: str):
        """Get a specific node."""
        node = engine.document.get_node(node_id)
        if node:
            return {"success": True, "node": node.model_dump(mode="json", by_alias=True)}
        raise HTTPException(status_code=404, detail="Node not found")

    @app.patch("/api/nodes/{node_id}")
    async def rename_node(node_id: str, request: UpdateNodeRequest):
        """Rename a node."""
        engine.rename_node(node_id, request.label)
        return {"success": True, "node": _node_json(manager, node_id)}

    @app.post("/api/nodes/{node_id}/move")
    async def move_node(node_id: str, request: MoveNodeRequest):
        """Move a node. Live drag frames pass commit=false."""
        engine.move_node(node_id, (request.x, request.y), commit=request.commit)
        return {"success": True, "node": _node_json(manager, node_id)}

    @app.patch("/api/nodes/{node_id}/style")
    async def update_node_style(node_id: str, request: UpdateStyleRequest):
        """Merge style fields into a node's style."""
        engine.set_node_style(node_id, request.model_dump(exclude_none=True))
        return {"success": True, "node": _node_json(manager, node_id)}

    @app.put("/api/nodes/{node_id}/content")
    async def set_node_content(node_id: str, request: SetContentRequest):
        """Replace a node's content."""
        engine.set_node_content(node_id, {"kind": ContentKind(request.kind).value, "value": request.value})
        return {"success": True, "node": _node_json(manager, node_id)}

    @app.delete("/api/nodes/{node_id}")
    async def delete_node(node_id: str):
        """Delete a node, its subtree and their connections."""
        existed = node_id in engine.document.nodes
        engine.delete_node(node_id)
        return {"success": True, "deleted": existed}

    # --- Connection Operations ---

    @app.post("/api/connections")
    async def create_connection(request: CreateConnectionRequest):
        """Create a new manual connection."""
        connection_id = engine.add_connection(
            request.source_id,
            request.target_id,
            CurveKind(request.curve_kind).value,
        )
        connection = engine.document.connections[connection_id]
        return {"success": True, "connection": connection.model_dump(mode="json", by_alias=True)}

    @app.get("/api/connections/{connection_id}")
    async def get_connection(connection_id: str):
        """Get a specific connection."""
        connection = engine.document.get_connection(connection_id)
        if connection:
            return {"success": True, "connection": connection.model_dump(mode="json", by_alias=True)}
        raise HTTPException(status_code=404, detail="Connection not found")

    @app.delete("/api/connections/{connection_id}")
    async def delete_connection(connection_id: str):
        """Delete a connection."""
        existed = connection_id in engine.document.connections
        engine.delete_connection(connection_id)
        return {"success": True, "deleted": existed}

    # --- View (transient, not recorded in history) ---

    def _view() -> dict:
        return engine.document.view.model_dump(mode="json", by_alias=True)

    @app.post("/api/view/zoom-in")
    async def zoom_in():
        engine.zoom_in()
        return {"success": True, "view": _view()}

    @app.post("/api/view/zoom-out")
    async def zoom_out():
        engine.zoom_out()
        return {"success": True, "view": _view()}

    @app.post("/api/view/reset")
    async def reset_view():
        engine.reset_view()
        return {"success": True, "view": _view()}

    @app.put("/api/view/zoom")
    async def set_zoom(request: ZoomRequest):
        engine.set_zoom(request.zoom)
        return {"success": True, "view": _view()}

    @app.put("/api/view/pan")
    async def set_pan(request: PanRequest):
        engine.set_pan_offset((request.x, request.y))
        return {"success": True, "view": _view()}

    # --- Export ---

    @app.get("/api/export/json")
    async def export_json():
        """Download the mind map as '<title>.json'."""
        filename = engine.export_filename("json")
        return Response(
            content=engine.export_json(),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.get("/api/export/png")
    async def export_png(scale: float = Query(default=1.0, gt=0, le=4)):
        """Download the mind map as '<title>.png'."""
        filename = engine.export_filename("png")
        return Response(
            content=engine.export_png(scale=scale),
            media_type="image/png",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # --- Analysis & Validation ---

    @app.get("/api/mindmap/validate")
    async def validate_current_mindmap():
        """
        Validate the current mind map for structural issues.

        Returns a list of issues (errors, warnings, info) and a summary.
        """
        issues = engine.validate()
        return {
            "success": True,
            "issues": [issue.to_dict() for issue in issues],
            "summary": validation_summary(issues)
        }

    @app.get("/api/mindmap/summary")
    async def summarize_current_mindmap():
        """Get a structural summary of the current mind map."""
        return {"success": True, "summary": engine.summary().to_dict()}

    # --- WebSocket ---

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        WebSocket endpoint for real-time updates.

        Clients connect here to receive mindmap_updated events.
        """
        await ws_manager.connect(websocket)

        try:
            while True:
                data = await websocket.receive_text()
                if data == "ping":
                    await websocket.send_text('{"type": "pong"}')
        except WebSocketDisconnect:
            await ws_manager.disconnect(websocket)
        except Exception:
            logger.exception("WebSocket error")
            await ws_manager.disconnect(websocket)

    return app


app = create_app()


def main():
    """Run the backend with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
