"""
Diagram renderers.

Three variants share the DiagramRenderer lifecycle (mount / redraw /
unmount); `create_renderer` picks the one matching a parsed diagram.
"""

from ..models import ConceptMap, Diagram, Flowchart, MindMap
from .base import DiagramRenderer, NodePosition, NodeStyle, PositionStore
from .concept_map import ConceptMapRenderer, concept_style
from .flowchart import FlowchartRenderer, flow_style
from .layers import CanvasConnectorLayer, Connector, SvgConnectorLayer
from .mind_map import MindMapRenderer


def create_renderer(diagram: Diagram, **kwargs) -> DiagramRenderer:
    """Renderer for a parsed diagram; kwargs go to the renderer."""
    if isinstance(diagram, ConceptMap):
        return ConceptMapRenderer(diagram, **kwargs)
    elif isinstance(diagram, MindMap):
        return MindMapRenderer(diagram, **kwargs)
    elif isinstance(diagram, Flowchart):
        return FlowchartRenderer(diagram, **kwargs)
    raise TypeError(f"No renderer for {type(diagram).__name__}")


__all__ = [
    "DiagramRenderer",
    "NodePosition",
    "NodeStyle",
    "PositionStore",
    "ConceptMapRenderer",
    "MindMapRenderer",
    "FlowchartRenderer",
    "Connector",
    "SvgConnectorLayer",
    "CanvasConnectorLayer",
    "concept_style",
    "flow_style",
    "create_renderer",
]
