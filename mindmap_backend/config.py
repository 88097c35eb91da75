"""
Backend settings, read from MINDMAP_* environment variables.
"""
import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


STORAGE_PATH = Path(os.path.expanduser(os.environ.get(
    "MINDMAP_STORAGE_PATH", "~/.mindmap/mindmap.json"
)))
EXPORT_DIR = Path(os.path.expanduser(os.environ.get(
    "MINDMAP_EXPORT_DIR", "~/mindmaps"
)))

# 0 = keep every undo step
MAX_HISTORY = int(os.environ.get("MINDMAP_MAX_HISTORY", "100")) or None

AUTOSAVE = _env_bool("MINDMAP_AUTOSAVE", True)

HOST = os.environ.get("MINDMAP_HOST", "127.0.0.1")
PORT = int(os.environ.get("MINDMAP_PORT", "8765"))

LOG_LEVEL = os.environ.get("MINDMAP_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "MINDMAP_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
