"""
Mind Map Backend - FastAPI service exposing the mind-map engine.
"""

from .manager import MindMapManager
from .websocket_manager import WebSocketManager

__all__ = ["MindMapManager", "WebSocketManager"]
