"""Flowchart renderer: shaped steps joined by arrowed elbow connectors."""

from typing import Optional

from ..dom import Container, Element
from ..geometry import ElbowPath, bottom_center_of, elbow_path, top_center_of
from ..layout import estimate_text_box, parse_length
from ..models import FlowKind, FlowNode
from .base import DiagramRenderer, NodeStyle
from .layers import SvgConnectorLayer

# Decision diamonds are a fixed square turned 45 degrees
DECISION_SIZE = 128
DECISION_ROTATION = 45.0

ARROWHEAD_MARKER = "arrowhead"


def flow_style(kind: FlowKind) -> NodeStyle:
    """Shape and colours for a flowchart node kind."""
    if kind == FlowKind.START_END:
        return NodeStyle(
            shape="pill", fill="#fbcfe8", stroke="#ec4899", stroke_width=2,
            classes=("flowchart-node", "start-end"),
        )
    elif kind == FlowKind.PROCESS:
        return NodeStyle(
            shape="rect", fill="#dbeafe", stroke="#60a5fa", stroke_width=2,
            classes=("flowchart-node", "process"),
        )
    elif kind == FlowKind.DECISION:
        return NodeStyle(
            shape="diamond", fill="#dcfce7", stroke="#4ade80", stroke_width=2,
            corner_radius=0, classes=("flowchart-node", "decision"),
        )
    raise ValueError(f"Unhandled flowchart kind: {kind!r}")


def _build_element(node: FlowNode) -> Element:
    left = parse_length(node.position.left)
    top = parse_length(node.position.top)
    classes = flow_style(node.type).classes

    if node.type == FlowKind.DECISION:
        # The box is rotated; the label is turned back so it reads upright
        size = DECISION_SIZE
        return Element(
            node.id, node.width or size, node.height or size,
            left=left, top=top, label=node.label, classes=classes,
            rotation=DECISION_ROTATION, label_rotation=-DECISION_ROTATION,
        )

    width, height = estimate_text_box(node.label, padding_x=16, padding_y=8)
    return Element(
        node.id, node.width or width, node.height or height,
        left=left, top=top, label=node.label, classes=classes,
    )


class FlowchartRenderer(DiagramRenderer):
    """
    Flowcharts on a fixed 1200x800 canvas.

    Connectors leave the bottom centre of the source, drop, then run to
    the top centre of the target, ending in an arrowhead.
    """

    kind = "flowchart"

    def _build_nodes(self) -> list[tuple[Element, NodeStyle]]:
        return [(_build_element(node), flow_style(node.type)) for node in self.diagram.nodes]

    def _build_layer(self, container: Container) -> SvgConnectorLayer:
        return SvgConnectorLayer(len(self.diagram.connections), marker_end=ARROWHEAD_MARKER)

    def _connector_path(self, source: Element, target: Element) -> Optional[ElbowPath]:
        start = bottom_center_of(source, self.container)
        end = top_center_of(target, self.container)
        if start is None or end is None:
            return None
        return elbow_path(start, end)
