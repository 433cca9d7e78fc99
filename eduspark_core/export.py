"""
SVG snapshot of a mounted renderer.

Connectors are drawn first, nodes on top in stacking order, so the output
matches what the interactive view shows at the moment of the export.
"""

import logging

import drawsvg as draw

from .geometry import CubicBezier, ElbowPath, StraightPath
from .layout import LINE_HEIGHT, wrap_lines
from .renderers import DiagramRenderer, MindMapRenderer
from .renderers.base import NodeStyle

logger = logging.getLogger(__name__)

CONNECTOR_COLOR = "#4b5563"
ARROW_COLOR = "#333333"
CURVE_COLOR = "#94a3b8"
FONT_FAMILY = "Inter, -apple-system, BlinkMacSystemFont, sans-serif"


def _render_connector(d: draw.Drawing, path) -> None:
    if isinstance(path, StraightPath):
        d.append(draw.Path(d=path.d, stroke=CONNECTOR_COLOR, stroke_width=1.5, fill="none"))
    elif isinstance(path, CubicBezier):
        d.append(draw.Path(d=path.d, stroke=CURVE_COLOR, stroke_width=2, fill="none"))
    elif isinstance(path, ElbowPath):
        d.append(draw.Path(d=path.d, stroke=ARROW_COLOR, stroke_width=2, fill="none"))
        tip, left, right = path.arrow.points()
        d.append(draw.Lines(
            tip.x, tip.y, left.x, left.y, right.x, right.y,
            close=True, fill=ARROW_COLOR, stroke="none",
        ))
    else:
        raise TypeError(f"Unknown connector path: {type(path).__name__}")


def _render_box(d: draw.Drawing, x: float, y: float, w: float, h: float, style: NodeStyle) -> None:
    common = dict(fill=style.fill, stroke=style.stroke, stroke_width=style.stroke_width)
    if style.shape == "pill":
        d.append(draw.Rectangle(x, y, w, h, rx=h / 2, ry=h / 2, **common))
    elif style.shape == "diamond":
        cx, cy = x + w / 2, y + h / 2
        d.append(draw.Rectangle(x, y, w, h, transform=f"rotate(45, {cx}, {cy})", **common))
    else:
        radius = style.corner_radius
        d.append(draw.Rectangle(x, y, w, h, rx=radius, ry=radius, **common))


def _render_lines(d: draw.Drawing, lines: list[str], cx: float, top: float, style: NodeStyle,
                  font_size: float, anchor: str = "middle") -> float:
    """Stacked text lines starting at `top`; returns the y below the last line."""
    y = top
    for line in lines:
        if not line:
            y += LINE_HEIGHT
            continue
        d.append(draw.Text(
            line, font_size, cx, y + LINE_HEIGHT / 2,
            fill=style.text_color,
            font_family=FONT_FAMILY,
            font_weight=style.font_weight,
            font_style=style.font_style,
            text_anchor=anchor,
            dominant_baseline="middle",
        ))
        y += LINE_HEIGHT
    return y


def render_svg(renderer: DiagramRenderer) -> str:
    """
    Snapshot a mounted renderer as an SVG document.

    Raises:
        RuntimeError: if the renderer is not mounted
    """
    container = renderer.container
    if container is None:
        raise RuntimeError("Renderer must be mounted before export")

    d = draw.Drawing(container.width, container.height)
    d.append(draw.Rectangle(0, 0, container.width, container.height, fill="#ffffff"))

    for connector in renderer.connectors:
        _render_connector(d, connector.path)

    elements = sorted(
        (renderer.node_element(node_id) for node_id in renderer.node_ids),
        key=lambda el: el.z_index,
    )
    for element in elements:
        style = renderer.node_style(element.id)
        offset = element.offset()
        x, y, w, h = offset.x, offset.y, element.width, element.height
        _render_box(d, x, y, w, h, style)

        children = []
        if isinstance(renderer, MindMapRenderer):
            children = renderer.branch_children(element.id)

        if children:
            # Branch card: left-aligned title then bullet list
            below = _render_lines(d, wrap_lines(element.label, 22), x + 12, y + 12, style,
                                  style.font_size + 2, anchor="start")
            bullets = [f"• {line}" for child in children for line in wrap_lines(child, 20)]
            _render_lines(d, bullets, x + 12, below + 8, style, style.font_size - 1, anchor="start")
        else:
            lines = wrap_lines(element.label)
            top = y + (h - len(lines) * LINE_HEIGHT) / 2
            _render_lines(d, lines, x + w / 2, top, style, style.font_size)

    logger.debug("Exported %s with %d connectors", renderer.kind, len(renderer.connectors))
    return d.as_svg()
