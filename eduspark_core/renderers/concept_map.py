"""Concept map renderer: styled boxes joined by straight lines."""

from typing import Optional

from ..dom import Container, Element
from ..geometry import StraightPath, anchor_of, straight_path
from ..layout import estimate_text_box, parse_length
from ..models import ConceptKind, ConceptNode
from .base import DiagramRenderer, NodeStyle
from .layers import SvgConnectorLayer


def concept_style(kind: ConceptKind) -> NodeStyle:
    """Style bucket for a concept map node kind."""
    if kind == ConceptKind.PRINCIPAL:
        return NodeStyle(
            shape="rect", fill="#1d4ed8", stroke="#60a5fa", text_color="#ffffff",
            stroke_width=2, font_size=16, font_weight="bold",
            classes=("node", "principal"),
        )
    elif kind == ConceptKind.CONCEPT:
        return NodeStyle(
            shape="rect", fill="#dbeafe", stroke="#93c5fd",
            classes=("node", "concepto"),
        )
    elif kind == ConceptKind.CONNECTOR:
        return NodeStyle(
            shape="rect", fill="#f9fafb", stroke="#d1d5db", font_style="italic",
            classes=("node", "conector"),
        )
    raise ValueError(f"Unhandled concept kind: {kind!r}")


def _node_size(node: ConceptNode) -> tuple[float, float]:
    if node.type == ConceptKind.PRINCIPAL:
        width, height = estimate_text_box(node.label, padding_x=16, padding_y=12)
    else:
        width, height = estimate_text_box(node.label, padding_x=16, padding_y=8)
    return node.width or width, node.height or height


class ConceptMapRenderer(DiagramRenderer):
    """
    Concept maps on a fixed 1200x800 canvas.

    Node kind only picks the style; every connector is a straight line
    between node centres.
    """

    kind = "concept-map"

    def _build_nodes(self) -> list[tuple[Element, NodeStyle]]:
        built = []
        for node in self.diagram.nodes:
            style = concept_style(node.type)
            width, height = _node_size(node)
            element = Element(
                node.id, width, height,
                left=parse_length(node.position.left),
                top=parse_length(node.position.top),
                label=node.label,
                classes=style.classes,
            )
            built.append((element, style))
        return built

    def _build_layer(self, container: Container) -> SvgConnectorLayer:
        return SvgConnectorLayer(len(self.diagram.connections))

    def _connector_path(self, source: Element, target: Element) -> Optional[StraightPath]:
        start = anchor_of(source, self.container)
        end = anchor_of(target, self.container)
        if start is None or end is None:
            return None
        return straight_path(start, end)
