"""
Drag Controller - pointer-driven repositioning of a single node.

Each node gets its own controller with a two-state machine:

    IDLE --pointerdown on node--> DRAGGING --pointerup (global)--> IDLE

While dragging, global pointermove events move the node, clamped inside
its container. The controller does not own positions: it proposes them to
the renderer through `on_move`, and reports the end of the gesture
through `on_release`.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from .dom import (
    DRAG_Z_INDEX,
    REST_Z_INDEX,
    Container,
    Document,
    Element,
    Event,
    PointerEvent,
    Subscription,
    listen,
)
from .geometry import Point
from .layout import clamp_box

logger = logging.getLogger(__name__)

MoveCallback = Callable[[str, float, float], None]
ReleaseCallback = Callable[[str], None]


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragController:
    """
    Turns pointer events on one element into bounded position proposals.

    Mouse, touch and pen input share the same path. Touch gestures have
    their default action (page scrolling) suppressed while active.
    """

    def __init__(
        self,
        element: Element,
        container: Container,
        document: Document,
        on_move: MoveCallback,
        on_release: Optional[ReleaseCallback] = None,
    ):
        self.element = element
        self.container = container
        self.document = document
        self._on_move = on_move
        self._on_release = on_release
        self.state = DragState.IDLE
        self._offset = Point(0, 0)
        self._pointer_id: Optional[int] = None
        self._down: Optional[Subscription] = None
        self._gesture: list[Subscription] = []

    @property
    def node_id(self) -> str:
        return self.element.id

    @property
    def is_attached(self) -> bool:
        return self._down is not None and self._down.active

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    def attach(self) -> None:
        """Start listening for presses on the element."""
        if self.is_attached:
            return
        self.element.touch_action = "none"
        self._down = listen(self.element, "pointerdown", self._handle_down)

    def detach(self) -> None:
        """Remove every listener. Later events have no effect."""
        if self._down is not None:
            self._down.unsubscribe()
            self._down = None
        self._end_gesture()
        self.state = DragState.IDLE

    # --- Gesture handling ---

    def _handle_down(self, event: Event) -> None:
        if not isinstance(event, PointerEvent) or self.is_dragging:
            return
        rect = self.element.layout_rect()
        if rect is None:
            return
        if event.pointer_type == "touch":
            event.prevent_default()

        self._offset = Point(event.client_x - rect.left, event.client_y - rect.top)
        self._pointer_id = event.pointer_id
        self.element.z_index = DRAG_Z_INDEX
        self.element.cursor = "grabbing"
        self.state = DragState.DRAGGING
        self._gesture = [
            listen(self.document, "pointermove", self._handle_move),
            listen(self.document, "pointerup", self._handle_up),
        ]
        logger.debug("Drag started on %s", self.node_id)

    def _handle_move(self, event: Event) -> None:
        if not self._owns(event):
            return
        if event.pointer_type == "touch":
            event.prevent_default()

        container_rect = self.container.bounding_rect()
        if container_rect is None:
            return
        left = event.client_x - container_rect.left - self._offset.x
        top = event.client_y - container_rect.top - self._offset.y
        left, top = clamp_box(
            left, top,
            self.element.width, self.element.height,
            container_rect.width, container_rect.height,
        )
        self._on_move(self.node_id, left, top)

    def _handle_up(self, event: Event) -> None:
        if not self._owns(event):
            return
        self.element.z_index = REST_Z_INDEX
        self.element.cursor = "move"
        self.state = DragState.IDLE
        self._end_gesture()
        logger.debug("Drag ended on %s", self.node_id)
        if self._on_release is not None:
            self._on_release(self.node_id)

    def _owns(self, event: Event) -> bool:
        return (
            self.is_dragging
            and isinstance(event, PointerEvent)
            and event.pointer_id == self._pointer_id
        )

    def _end_gesture(self) -> None:
        for subscription in self._gesture:
            subscription.unsubscribe()
        self._gesture = []
        self._pointer_id = None
