"""
EduSpark diagram core - models, validation, geometry and interactive renderers.

This package is shared by the session service and the CLI, so both draw
diagrams with exactly the same logic.
"""

from .models import (
    # Enums
    DiagramType,
    ConceptKind,
    FlowKind,
    # Models
    Position,
    Connection,
    ConceptNode,
    FlowNode,
    Branch,
    ConceptMap,
    MindMap,
    Flowchart,
    Diagram,
    CENTRAL_NODE_ID,
    DiagramFormatError,
    parse_diagram,
)

from .validation import validate_diagram, validation_summary, ValidationIssue, IssueSeverity
from .geometry import (
    Point,
    Rect,
    StraightPath,
    CubicBezier,
    ElbowPath,
    Arrowhead,
    anchor_of,
    bottom_center_of,
    top_center_of,
    straight_path,
    curved_path,
    elbow_path,
)
from .dom import Window, Document, Container, Element, CanvasElement, PointerEvent, Subscription, listen
from .drag import DragController, DragState
from .redraw import RedrawScheduler, RedrawReason
from .renderers import (
    DiagramRenderer,
    ConceptMapRenderer,
    MindMapRenderer,
    FlowchartRenderer,
    Connector,
    create_renderer,
)
from .export import render_svg

__all__ = [
    # Enums
    "DiagramType",
    "ConceptKind",
    "FlowKind",
    # Models
    "Position",
    "Connection",
    "ConceptNode",
    "FlowNode",
    "Branch",
    "ConceptMap",
    "MindMap",
    "Flowchart",
    "Diagram",
    "CENTRAL_NODE_ID",
    "DiagramFormatError",
    "parse_diagram",
    # Validation
    "validate_diagram",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Geometry
    "Point",
    "Rect",
    "StraightPath",
    "CubicBezier",
    "ElbowPath",
    "Arrowhead",
    "anchor_of",
    "bottom_center_of",
    "top_center_of",
    "straight_path",
    "curved_path",
    "elbow_path",
    # Document model
    "Window",
    "Document",
    "Container",
    "Element",
    "CanvasElement",
    "PointerEvent",
    "Subscription",
    "listen",
    # Interaction
    "DragController",
    "DragState",
    "RedrawScheduler",
    "RedrawReason",
    # Rendering
    "DiagramRenderer",
    "ConceptMapRenderer",
    "MindMapRenderer",
    "FlowchartRenderer",
    "Connector",
    "create_renderer",
    "render_svg",
]
