"""
Headless document model.

The renderers were designed against a browser: positioned elements inside
a container, bounding rects, window/document listeners and pointer events.
This module provides just enough of that model to run them anywhere:

- EventTarget with add/remove/dispatch and bubbling
- Subscription handles so owners can drop listeners deterministically
- Element / Container / CanvasElement with CSS-like positioning
- Window (resize) and Document (fullscreen, global pointer events)
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .geometry import Point, Rect
from .layout import Length

logger = logging.getLogger(__name__)

Listener = Callable[["Event"], None]

# Stacking order of nodes at rest and while dragged
REST_Z_INDEX = 10
DRAG_Z_INDEX = 1000


@dataclass
class Event:
    """A dispatched event. `bubbles` events walk up to the document."""
    type: str
    bubbles: bool = False
    target: Any = None
    current_target: Any = None
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class PointerEvent(Event):
    """Unified mouse / touch / pen input."""
    bubbles: bool = True
    client_x: float = 0.0
    client_y: float = 0.0
    pointer_type: str = "mouse"  # "mouse", "touch" or "pen"
    pointer_id: int = 1


class EventTarget:
    """Anything listeners can be attached to."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: Optional[str] = None) -> int:
        """Number of listeners for one event type, or for all types."""
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(v) for v in self._listeners.values())

    def _parent_target(self) -> Optional["EventTarget"]:
        return None

    def dispatch_event(self, event: Event) -> bool:
        """
        Run listeners on this target, then on its ancestors if the event bubbles.

        Listeners removed while the event is in flight are not called.
        Returns False if a listener called prevent_default().
        """
        if event.target is None:
            event.target = self
        node: Optional[EventTarget] = self
        while node is not None:
            event.current_target = node
            current = node._listeners.get(event.type, [])
            for listener in list(current):
                if listener in node._listeners.get(event.type, ()):
                    listener(event)
            if not event.bubbles or event.propagation_stopped:
                break
            node = node._parent_target()
        return not event.default_prevented


class Subscription:
    """Handle for one listener; unsubscribe() is safe to call repeatedly."""

    def __init__(self, target: EventTarget, event_type: str, listener: Listener):
        self._target = target
        self.event_type = event_type
        self._listener = listener
        self._active = True
        target.add_event_listener(event_type, listener)

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._target.remove_event_listener(self.event_type, self._listener)
        self._active = False


def listen(target: EventTarget, event_type: str, listener: Listener) -> Subscription:
    """Attach `listener` and return the handle that removes it."""
    return Subscription(target, event_type, listener)


class Element(EventTarget):
    """
    An absolutely positioned box inside a Container.

    `left`/`top` are CSS lengths resolved against the container size.
    `translate` shifts the box by a fraction of its own size (the
    translate(-50%, -50%) centring trick). `rotation` turns the box about
    its centre, which changes the bounding rect but not the layout box.
    """

    def __init__(
        self,
        element_id: str,
        width: float,
        height: float,
        *,
        left: Length = Length.px(0),
        top: Length = Length.px(0),
        label: str = "",
        classes: tuple[str, ...] = (),
        rotation: float = 0.0,
        label_rotation: float = 0.0,
        translate: tuple[float, float] = (0.0, 0.0),
    ):
        super().__init__()
        self.id = element_id
        self.width = width
        self.height = height
        self.left = left
        self.top = top
        self.label = label
        self.classes = list(classes)
        self.rotation = rotation
        self.label_rotation = label_rotation
        self.translate = translate
        self.z_index = REST_Z_INDEX
        self.cursor = "move"
        self.touch_action = "auto"
        self.parent: Optional["Container"] = None

    def _parent_target(self) -> Optional[EventTarget]:
        return self.parent

    @property
    def is_mounted(self) -> bool:
        return self.parent is not None and self.parent.is_mounted

    def offset(self) -> Point:
        """Top-left of the layout box relative to the container."""
        extent_w = self.parent.width if self.parent else 0
        extent_h = self.parent.height if self.parent else 0
        tx, ty = self.translate
        return Point(
            self.left.resolve(extent_w) + tx * self.width,
            self.top.resolve(extent_h) + ty * self.height,
        )

    def move_to(self, left: float, top: float) -> None:
        """Place the layout box's top-left at (left, top) container pixels."""
        tx, ty = self.translate
        self.left = Length.px(left - tx * self.width)
        self.top = Length.px(top - ty * self.height)

    def layout_rect(self) -> Optional[Rect]:
        """Unrotated box in viewport coordinates, None when detached."""
        if not self.is_mounted:
            return None
        parent_rect = self.parent.bounding_rect()
        if parent_rect is None:
            return None
        offset = self.offset()
        return Rect(parent_rect.left + offset.x, parent_rect.top + offset.y, self.width, self.height)

    def bounding_rect(self) -> Optional[Rect]:
        """Visual box in viewport coordinates, accounting for rotation."""
        rect = self.layout_rect()
        if rect is None or self.rotation % 360 == 0:
            return rect
        rad = math.radians(self.rotation)
        cos, sin = abs(math.cos(rad)), abs(math.sin(rad))
        width = self.width * cos + self.height * sin
        height = self.width * sin + self.height * cos
        center = rect.center()
        return Rect(center.x - width / 2, center.y - height / 2, width, height)


class CanvasElement(Element):
    """
    A drawing surface covering its container.

    Drawing calls are recorded as operations; resizing the pixel buffer
    clears it, as with an HTML canvas.
    """

    def __init__(self, element_id: str = "canvas", width: float = 0, height: float = 0):
        super().__init__(element_id, width, height)
        self.z_index = 1
        self.cursor = "default"
        self.operations: list[tuple[str, Any]] = []
        self.stroke_style = "#94a3b8"
        self.line_width = 2.0

    def resize_buffer(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        self.clear()

    def clear(self) -> None:
        self.operations.clear()

    def stroke(self, path: Any) -> None:
        """Record a stroked path with the current style."""
        self.operations.append(("stroke", path, self.stroke_style, self.line_width))

    @property
    def stroked_paths(self) -> list[Any]:
        return [op[1] for op in self.operations if op[0] == "stroke"]


class Container(EventTarget):
    """
    The diagram region. Placed in the viewport at `origin`.

    `responsive` containers follow the window width (up to `max_width`)
    and take the whole window when shown fullscreen.
    """

    def __init__(
        self,
        container_id: str,
        width: float,
        height: float,
        *,
        origin: Point = Point(0, 0),
        responsive: bool = False,
        max_width: Optional[float] = None,
    ):
        super().__init__()
        self.id = container_id
        self.width = width
        self.height = height
        self.origin = origin
        self.responsive = responsive
        self.max_width = max_width if max_width is not None else width
        self.children: dict[str, Element] = {}
        self.document: Optional["Document"] = None

    def _parent_target(self) -> Optional[EventTarget]:
        return self.document

    @property
    def is_mounted(self) -> bool:
        return self.document is not None

    def bounding_rect(self) -> Optional[Rect]:
        if not self.is_mounted:
            return None
        return Rect(self.origin.x, self.origin.y, self.width, self.height)

    def append_child(self, element: Element) -> Element:
        element.parent = self
        self.children[element.id] = element
        return element

    def remove_child(self, element: Element) -> None:
        if self.children.get(element.id) is element:
            del self.children[element.id]
        element.parent = None

    def get(self, element_id: str) -> Optional[Element]:
        return self.children.get(element_id)

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height


class Document(EventTarget):
    """Holds mounted containers and dispatches global events."""

    def __init__(self, window: "Window"):
        super().__init__()
        self.window = window
        self.containers: list[Container] = []
        self.fullscreen_element: Optional[Container] = None
        self._saved_geometry: Optional[tuple[Point, float, float]] = None

    def mount(self, container: Container) -> Container:
        container.document = self
        self.containers.append(container)
        return container

    def unmount(self, container: Container) -> None:
        if self.fullscreen_element is container:
            self.exit_fullscreen()
        if container in self.containers:
            self.containers.remove(container)
        container.document = None

    # --- Fullscreen ---

    def request_fullscreen(self, container: Container) -> None:
        """Show `container` fullscreen and fire fullscreenchange."""
        if container.document is not self:
            raise ValueError(f"Container {container.id} is not mounted in this document")
        if self.fullscreen_element is container:
            return
        if self.fullscreen_element is not None:
            self._restore_fullscreen_element()
        self._saved_geometry = (container.origin, container.width, container.height)
        container.origin = Point(0, 0)
        if container.responsive:
            container.resize(self.window.inner_width, self.window.inner_height)
        self.fullscreen_element = container
        self.dispatch_event(Event("fullscreenchange"))

    def exit_fullscreen(self) -> None:
        if self.fullscreen_element is None:
            return
        self._restore_fullscreen_element()
        self.dispatch_event(Event("fullscreenchange"))

    def _restore_fullscreen_element(self) -> None:
        container = self.fullscreen_element
        if container is not None and self._saved_geometry is not None:
            origin, width, height = self._saved_geometry
            container.origin = origin
            container.resize(width, height)
        self.fullscreen_element = None
        self._saved_geometry = None

    # --- Pointer input ---

    def pointer_down(
        self,
        target: EventTarget,
        x: float,
        y: float,
        pointer_type: str = "mouse",
        pointer_id: int = 1,
    ) -> PointerEvent:
        """Press on `target`; the event bubbles up to the document."""
        event = PointerEvent("pointerdown", client_x=x, client_y=y,
                             pointer_type=pointer_type, pointer_id=pointer_id)
        target.dispatch_event(event)
        return event

    def pointer_move(self, x: float, y: float, pointer_type: str = "mouse", pointer_id: int = 1) -> PointerEvent:
        event = PointerEvent("pointermove", client_x=x, client_y=y,
                             pointer_type=pointer_type, pointer_id=pointer_id)
        self.dispatch_event(event)
        return event

    def pointer_up(self, x: float, y: float, pointer_type: str = "mouse", pointer_id: int = 1) -> PointerEvent:
        event = PointerEvent("pointerup", client_x=x, client_y=y,
                             pointer_type=pointer_type, pointer_id=pointer_id)
        self.dispatch_event(event)
        return event


class Window(EventTarget):
    """The viewport. Owns the document."""

    def __init__(self, width: float = 1280, height: float = 900):
        super().__init__()
        self.inner_width = width
        self.inner_height = height
        self.document = Document(self)

    def resize(self, width: float, height: float) -> None:
        """Change the viewport size and fire resize."""
        self.inner_width = width
        self.inner_height = height
        for container in self.document.containers:
            if not container.responsive:
                continue
            if container is self.document.fullscreen_element:
                container.resize(width, height)
            else:
                container.resize(min(container.max_width, width), container.height)
        logger.debug("Window resized to %sx%s", width, height)
        self.dispatch_event(Event("resize"))
