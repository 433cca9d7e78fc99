"""
Mind map renderer.

The title becomes a central node placed at 50%/50%; each branch is a card
positioned by percentages of the container, so the layout follows the
container when it is resized. All curves start at the central node and
are drawn onto one shared canvas that is cleared and redrawn as a whole.
"""

from typing import Optional

from ..dom import CanvasElement, Container, Element, Window
from ..geometry import CubicBezier, anchor_of, curved_path
from ..layout import Length, estimate_text_box, parse_length, to_percent, wrap_lines
from ..models import CENTRAL_NODE_ID, Branch, MindMap
from .base import DiagramRenderer, NodeStyle
from .layers import CanvasConnectorLayer

CENTRAL_MIN_WIDTH = 150
CENTRAL_MIN_HEIGHT = 60
BRANCH_WIDTH = 192

CENTRAL_STYLE = NodeStyle(
    shape="rect", fill="#2563eb", stroke="#1e40af", text_color="#ffffff",
    corner_radius=12, font_size=18, font_weight="bold",
    classes=("node-draggable", "central"),
)
BRANCH_STYLE = NodeStyle(
    shape="rect", fill="#ffffff", stroke="#e5e7eb",
    classes=("node-draggable", "branch"),
)


def branch_size(branch: Branch) -> tuple[float, float]:
    """Card size: padded title plus one bullet line per wrapped child."""
    if branch.width and branch.height:
        return branch.width, branch.height
    title_lines = len(wrap_lines(branch.title, 22))
    height = 24 + title_lines * 24
    if branch.children:
        height += 8 + sum(len(wrap_lines(child, 20)) * 20 + 4 for child in branch.children)
    return branch.width or BRANCH_WIDTH, branch.height or height


class MindMapRenderer(DiagramRenderer):
    """Responsive mind map with curved branches on a shared canvas."""

    kind = "mind-map"
    responsive = True

    def __init__(self, diagram: MindMap, **kwargs):
        super().__init__(diagram, **kwargs)
        self.canvas: Optional[CanvasElement] = None

    def _container_size(self, window: Window) -> tuple[float, float]:
        return min(self.canvas_width, window.inner_width), self.canvas_height

    def _build_nodes(self) -> list[tuple[Element, NodeStyle]]:
        width, height = estimate_text_box(
            self.diagram.title, padding_x=16, padding_y=16,
            min_width=CENTRAL_MIN_WIDTH, min_height=CENTRAL_MIN_HEIGHT,
        )
        central = Element(
            CENTRAL_NODE_ID, width, height,
            left=Length.percent(50), top=Length.percent(50),
            label=self.diagram.title,
            classes=CENTRAL_STYLE.classes,
            translate=(-0.5, -0.5),
        )
        built = [(central, CENTRAL_STYLE)]
        for branch in self.diagram.branches:
            width, height = branch_size(branch)
            element = Element(
                branch.id, width, height,
                left=parse_length(branch.position.left),
                top=parse_length(branch.position.top),
                label=branch.title,
                classes=BRANCH_STYLE.classes,
            )
            built.append((element, BRANCH_STYLE))
        return built

    def _build_layer(self, container: Container) -> CanvasConnectorLayer:
        self.canvas = CanvasElement("mind-map-canvas", container.width, container.height)
        # The canvas is not a node: mount it without registering it as one
        self.canvas.parent = container
        return CanvasConnectorLayer(self.canvas)

    def _connector_path(self, source: Element, target: Element) -> Optional[CubicBezier]:
        start = anchor_of(source, self.container)
        end = anchor_of(target, self.container)
        if start is None or end is None:
            return None
        return curved_path(start, end)

    def _committed_lengths(self, element: Element) -> tuple[Length, Length]:
        """Dragged nodes go back to percentages so they follow resizes."""
        container = self.container
        left = element.left.resolve(container.width)
        top = element.top.resolve(container.height)
        return to_percent(left, container.width), to_percent(top, container.height)

    def branch_children(self, branch_id: str) -> list[str]:
        branch = self.diagram.get_branch(branch_id)
        return list(branch.children) if branch else []

    def unmount(self) -> None:
        super().unmount()
        if self.canvas is not None:
            self.canvas.parent = None
            self.canvas = None
