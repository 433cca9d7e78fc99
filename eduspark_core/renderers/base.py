"""
Shared renderer machinery.

A renderer turns an immutable diagram into a mounted, interactive
container:
- one Element per node, placed from the diagram's initial positions
- one DragController per node
- a RedrawScheduler that recomputes connectors from live element rects
- a PositionStore holding committed and in-flight (transient) positions

Subclasses decide how nodes look, how a connector is shaped, and which
connector layer draws the result.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from ..dom import Container, Element, Window
from ..drag import DragController
from ..geometry import Path, Point
from ..layout import DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH, Length
from ..models import Connection, Diagram
from ..redraw import DEFAULT_FULLSCREEN_DELAY, CallLater, RedrawReason, RedrawScheduler
from .layers import CanvasConnectorLayer, Connector, SvgConnectorLayer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeStyle:
    """Visual bucket of a node, consumed by the SVG export."""
    shape: str  # "rect", "pill" or "diamond"
    fill: str
    stroke: str
    text_color: str = "#111827"
    stroke_width: float = 1.0
    corner_radius: float = 8.0
    font_size: float = 14.0
    font_weight: str = "normal"
    font_style: str = "normal"
    classes: tuple[str, ...] = ()


@dataclass
class NodePosition:
    """
    Where a node sits.

    `committed` is the canonical CSS position; `transient` is the pixel
    top-left proposed by an ongoing drag and wins while present.
    """
    committed: tuple[Length, Length]
    transient: Optional[Point] = None


@dataclass
class PositionStore:
    """Single source of truth for node positions of one renderer."""
    positions: dict[str, NodePosition] = field(default_factory=dict)

    def set_committed(self, node_id: str, left: Length, top: Length) -> None:
        self.positions[node_id] = NodePosition((left, top))

    def propose(self, node_id: str, left: float, top: float) -> None:
        self.positions[node_id].transient = Point(left, top)

    def commit(self, node_id: str, left: Length, top: Length) -> None:
        position = self.positions[node_id]
        position.committed = (left, top)
        position.transient = None

    def discard_transient(self) -> None:
        for position in self.positions.values():
            position.transient = None

    def get(self, node_id: str) -> Optional[NodePosition]:
        return self.positions.get(node_id)

    def is_transient(self, node_id: str) -> bool:
        position = self.positions.get(node_id)
        return position is not None and position.transient is not None


ConnectorLayer = Union[SvgConnectorLayer, CanvasConnectorLayer]


class DiagramRenderer(ABC):
    """
    Mounts a diagram into a Window and keeps its connectors attached.

    Lifecycle: mount() -> interaction -> unmount(). Every listener attached
    by mount() is removed by unmount().
    """

    kind = "diagram"
    responsive = False

    def __init__(
        self,
        diagram: Diagram,
        *,
        canvas_width: float = DEFAULT_CANVAS_WIDTH,
        canvas_height: float = DEFAULT_CANVAS_HEIGHT,
        call_later: Optional[CallLater] = None,
        fullscreen_delay: float = DEFAULT_FULLSCREEN_DELAY,
    ):
        self.diagram = diagram
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.store = PositionStore()
        self._call_later = call_later
        self._fullscreen_delay = fullscreen_delay
        self._window: Optional[Window] = None
        self._container: Optional[Container] = None
        self._nodes: dict[str, Element] = {}
        self._styles: dict[str, NodeStyle] = {}
        self._drags: dict[str, DragController] = {}
        self._scheduler: Optional[RedrawScheduler] = None
        self._layer: Optional[ConnectorLayer] = None
        self._connectors: list[Connector] = []
        self._redraw_callbacks: list[Callable[["DiagramRenderer"], None]] = []

    # --- Subclass hooks ---

    @abstractmethod
    def _build_nodes(self) -> list[tuple[Element, NodeStyle]]:
        """Create one positioned element (and its style) per node."""

    @abstractmethod
    def _connector_path(self, source: Element, target: Element) -> Optional[Path]:
        """Shape of one connector, None if it cannot be computed this frame."""

    @abstractmethod
    def _build_layer(self, container: Container) -> ConnectorLayer:
        """Create the connector layer inside the mounted container."""

    def _connections(self) -> list[Connection]:
        return list(self.diagram.connections)

    def _container_size(self, window: Window) -> tuple[float, float]:
        return self.canvas_width, self.canvas_height

    def _committed_lengths(self, element: Element) -> tuple[Length, Length]:
        """Canonical position to record once a drag ends."""
        return element.left, element.top

    # --- Properties ---

    @property
    def is_mounted(self) -> bool:
        return self._container is not None

    @property
    def container(self) -> Optional[Container]:
        return self._container

    @property
    def window(self) -> Optional[Window]:
        return self._window

    @property
    def scheduler(self) -> Optional[RedrawScheduler]:
        return self._scheduler

    @property
    def layer(self) -> Optional[ConnectorLayer]:
        return self._layer

    @property
    def connectors(self) -> list[Connector]:
        """Connectors drawn in the latest frame."""
        return list(self._connectors)

    @property
    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def node_element(self, node_id: str) -> Optional[Element]:
        return self._nodes.get(node_id)

    def node_style(self, node_id: str) -> Optional[NodeStyle]:
        return self._styles.get(node_id)

    def drag_controller(self, node_id: str) -> Optional[DragController]:
        return self._drags.get(node_id)

    def node_position(self, node_id: str) -> Optional[Point]:
        """Top-left of a node relative to the container, in pixels."""
        element = self._nodes.get(node_id)
        if element is None or element.parent is None:
            return None
        return element.offset()

    # --- Lifecycle ---

    def mount(self, window: Window, origin: Point = Point(0, 0)) -> Container:
        """Build elements, attach drag controllers and draw connectors."""
        if self._container is not None:
            raise RuntimeError(f"{self.kind} renderer is already mounted")

        # Build first: a node that cannot be placed must leave nothing mounted
        built = self._build_nodes()

        width, height = self._container_size(window)
        container = Container(
            f"{self.kind}-container", width, height,
            origin=origin,
            responsive=self.responsive,
            max_width=self.canvas_width,
        )
        window.document.mount(container)
        self._window = window
        self._container = container

        for element, style in built:
            if element.id in self._nodes:
                logger.warning("Duplicate node id %r in %s; keeping the first", element.id, self.kind)
                continue
            container.append_child(element)
            self._nodes[element.id] = element
            self._styles[element.id] = style
            self.store.set_committed(element.id, element.left, element.top)

        self._layer = self._build_layer(container)

        self._scheduler = RedrawScheduler(
            self.redraw, window,
            call_later=self._call_later,
            fullscreen_delay=self._fullscreen_delay,
        )
        for element in self._nodes.values():
            controller = DragController(
                element, container, window.document,
                on_move=self._on_drag_move,
                on_release=self._on_drag_release,
            )
            controller.attach()
            self._drags[element.id] = controller

        self._scheduler.subscribe()
        self._scheduler.trigger(RedrawReason.MOUNT)
        logger.info("Mounted %s %r with %d nodes", self.kind, self.diagram.title, len(self._nodes))
        return container

    def unmount(self) -> None:
        """Remove every listener and detach the container."""
        if self._container is None:
            return
        for controller in self._drags.values():
            controller.detach()
        self._drags = {}
        if self._scheduler is not None:
            self._scheduler.unsubscribe()
        self.store.discard_transient()
        if self._layer is not None:
            self._layer.clear()
        self._connectors = []
        for element in list(self._container.children.values()):
            self._container.remove_child(element)
        if self._window is not None:
            self._window.document.unmount(self._container)
        logger.info("Unmounted %s %r", self.kind, self.diagram.title)
        self._container = None
        self._window = None
        self._nodes = {}
        self._styles = {}
        self._layer = None
        self._scheduler = None

    # --- Drawing ---

    def redraw(self) -> list[Connector]:
        """
        Recompute every connector from current element rects.

        Connections with a missing endpoint, or whose geometry cannot be
        read this frame, are left out.
        """
        if self._container is None or self._layer is None:
            return []
        connectors: list[Connector] = []
        for index, conn in enumerate(self._connections()):
            source = self._nodes.get(conn.source)
            target = self._nodes.get(conn.target)
            if source is None or target is None:
                logger.debug("Skipping connection %d: %s -> %s has a missing node",
                             index, conn.source, conn.target)
                continue
            path = self._connector_path(source, target)
            if path is None:
                logger.debug("Skipping connection %d: geometry unavailable", index)
                continue
            connectors.append(Connector(index, conn.source, conn.target, path))
        self._connectors = connectors
        self._layer.update(connectors)
        for callback in self._redraw_callbacks:
            callback(self)
        return list(connectors)

    def on_redraw(self, callback: Callable[["DiagramRenderer"], None]) -> None:
        """Register a callback run after every redraw."""
        self._redraw_callbacks.append(callback)

    # --- Drag callbacks ---

    def _on_drag_move(self, node_id: str, left: float, top: float) -> None:
        element = self._nodes.get(node_id)
        if element is None:
            return
        element.move_to(left, top)
        self.store.propose(node_id, left, top)
        if self._scheduler is not None:
            self._scheduler.trigger(RedrawReason.DRAG)

    def _on_drag_release(self, node_id: str) -> None:
        element = self._nodes.get(node_id)
        if element is None:
            return
        left, top = self._committed_lengths(element)
        element.left, element.top = left, top
        self.store.commit(node_id, left, top)

    # --- Helpers ---

    def drag_node(self, node_id: str, to_left: float, to_top: float,
                  pointer_type: str = "mouse", pointer_id: int = 1) -> Optional[Point]:
        """
        Drag a node so its top-left lands at (to_left, to_top), clamped.

        Runs a full pointer gesture through the document, grabbing the node
        at its centre. Returns the resulting position.
        """
        element = self._nodes.get(node_id)
        if element is None or self._window is None or self._container is None:
            return None
        rect = element.layout_rect()
        container_rect = self._container.bounding_rect()
        if rect is None or container_rect is None:
            return None
        grab_x, grab_y = rect.width / 2, rect.height / 2
        document = self._window.document
        document.pointer_down(element, rect.left + grab_x, rect.top + grab_y, pointer_type, pointer_id)
        x = container_rect.left + to_left + grab_x
        y = container_rect.top + to_top + grab_y
        document.pointer_move(x, y, pointer_type, pointer_id)
        document.pointer_up(x, y, pointer_type, pointer_id)
        return self.node_position(node_id)

    def snapshot(self) -> dict:
        """JSON-friendly view of the current frame."""
        container = self._container
        nodes = []
        for node_id, element in self._nodes.items():
            offset = element.offset()
            nodes.append({
                "id": node_id,
                "label": element.label,
                "classes": list(element.classes),
                "left": offset.x,
                "top": offset.y,
                "css_left": str(element.left),
                "css_top": str(element.top),
                "width": element.width,
                "height": element.height,
                "rotation": element.rotation,
                "z_index": element.z_index,
                "dragging": self.store.is_transient(node_id),
            })
        return {
            "type": self.kind,
            "title": self.diagram.title,
            "mounted": container is not None,
            "container": (
                {"width": container.width, "height": container.height}
                if container is not None else None
            ),
            "nodes": nodes,
            "connectors": [c.to_dict() for c in self._connectors],
        }
