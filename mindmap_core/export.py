"""
Raster export - render a mind-map snapshot to a PNG image with Pillow.

The rendering is a read-only function of a serialized snapshot. It is not
pixel-identical to an interactive canvas, but keeps relative node positions
and connection topology: every node is drawn at its document position
(translated so the drawing starts at the margin) and every connection is drawn
between the centers of its endpoints.
"""

import io
import re
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .models import Document
from .serialization import serialize


NODE_WIDTH = 120
NODE_HEIGHT = 40
MARGIN = 40
BACKGROUND = "#ffffff"
LINE_COLOR = "#000000"
LINE_WIDTH = 2
CURVE_BULGE = 50  # Vertical control point offset for curved connections
CURVE_SEGMENTS = 24
MAX_DIMENSION = 4096  # Largest image side in pixels; wider maps are drawn smaller
MIN_LABEL_WIDTH = 24  # Boxes narrower than this get no label

_TAG_RE = re.compile(r"<[^>]+>")


def _color(value: Optional[str], default: str) -> tuple[int, int, int]:
    """Parse a CSS color, falling back to default for anything Pillow rejects."""
    if value:
        try:
            return ImageColor.getrgb(value)[:3]
        except ValueError:
            pass
    return ImageColor.getrgb(default)[:3]


def _plain_text(label: str) -> str:
    """Strip rich-text markup from a label for raster output."""
    return " ".join(_TAG_RE.sub(" ", label or "").split())


def _bezier(start: tuple[float, float], end: tuple[float, float]) -> list[tuple[float, float]]:
    """Sample a cubic curve that bows up out of the source and into the target."""
    (sx, sy), (ex, ey) = start, end
    cx = sx + (ex - sx) * 0.5
    c1 = (cx, sy - CURVE_BULGE)
    c2 = (cx, ey + CURVE_BULGE)

    points = []
    for i in range(CURVE_SEGMENTS + 1):
        t = i / CURVE_SEGMENTS
        u = 1 - t
        x = u**3 * sx + 3 * u**2 * t * c1[0] + 3 * u * t**2 * c2[0] + t**3 * ex
        y = u**3 * sy + 3 * u**2 * t * c1[1] + 3 * u * t**2 * c2[1] + t**3 * ey
        points.append((x, y))
    return points


def _fit_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> str:
    """Truncate text with an ellipsis until it fits max_width."""
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + "...", font=font) > max_width:
        text = text[:-1]
    return text + "..."


def render_snapshot(snapshot: dict, scale: float = 1.0) -> Image.Image:
    """
    Render a serialized snapshot to a Pillow image.

    Args:
        snapshot: Output of serialization.serialize()
        scale: Pixel scale factor applied to document coordinates. Lowered
            when needed so neither side exceeds MAX_DIMENSION.

    Returns:
        An RGB image sized to fit every node plus a margin
    """
    data = snapshot["data"]
    nodes = data["nodes"]
    connections = data["connections"]

    if nodes:
        min_x = min(n["position"]["x"] for n in nodes.values())
        min_y = min(n["position"]["y"] for n in nodes.values())
        max_x = max(n["position"]["x"] for n in nodes.values())
        max_y = max(n["position"]["y"] for n in nodes.values())
    else:
        min_x = min_y = max_x = max_y = 0

    span_x = max_x - min_x + NODE_WIDTH
    span_y = max_y - min_y + NODE_HEIGHT
    scale = min(scale, (MAX_DIMENSION - 2 * MARGIN) / span_x, (MAX_DIMENSION - 2 * MARGIN) / span_y)

    width = int(span_x * scale) + 2 * MARGIN
    height = int(span_y * scale) + 2 * MARGIN

    def to_pixels(x: float, y: float) -> tuple[float, float]:
        return (MARGIN + (x - min_x) * scale, MARGIN + (y - min_y) * scale)

    def center(node: dict) -> tuple[float, float]:
        x, y = to_pixels(node["position"]["x"], node["position"]["y"])
        return (x + NODE_WIDTH * scale / 2, y + NODE_HEIGHT * scale / 2)

    image = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()

    # Connections first so nodes are drawn over them
    for connection in connections.values():
        source = nodes.get(connection["sourceId"])
        target = nodes.get(connection["targetId"])
        if source is None or target is None:
            continue
        start, end = center(source), center(target)
        if connection.get("curveKind") == "straight":
            draw.line([start, end], fill=LINE_COLOR, width=LINE_WIDTH)
        else:
            draw.line(_bezier(start, end), fill=LINE_COLOR, width=LINE_WIDTH, joint="curve")

    for node in nodes.values():
        style = node.get("style") or {}
        x, y = to_pixels(node["position"]["x"], node["position"]["y"])
        box = (x, y, x + NODE_WIDTH * scale, y + NODE_HEIGHT * scale)

        fill = _color(style.get("backgroundColor"), "#ffffff")
        outline = _color(style.get("borderColor"), "#000000")

        if NODE_WIDTH * scale < MIN_LABEL_WIDTH:
            # Too small for corners or text
            draw.rectangle(box, fill=fill, outline=outline)
            continue

        draw.rounded_rectangle(
            box,
            radius=min(style.get("borderRadius", 8), NODE_HEIGHT / 2) * scale,
            fill=fill,
            outline=outline,
            width=max(1, int(style.get("borderWidth", 1))),
        )

        text = _fit_text(draw, _plain_text(node.get("label", "")), font, NODE_WIDTH * scale - 8)
        if text:
            left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
            cx, cy = center(node)
            draw.text(
                (cx - (right - left) / 2 - left, cy - (bottom - top) / 2 - top),
                text,
                font=font,
                fill=_color(style.get("color"), "#000000"),
            )

    return image


def export_png(document: Document, scale: float = 1.0) -> bytes:
    """Render a document to PNG bytes. Never touches engine state."""
    image = render_snapshot(serialize(document), scale=scale)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
