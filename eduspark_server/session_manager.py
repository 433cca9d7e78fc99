"""
Session Manager - mounted diagrams and the environment events they receive.

This module implements:
- One session per generated diagram: a renderer mounted in its own Window
- O(1) session lookup by id
- Forwarding of pointer, resize and fullscreen events to the session
- Change callbacks fired after every redraw, for real-time sync
- Deterministic teardown (every renderer is unmounted on close)
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from eduspark_core.export import render_svg
from eduspark_core.models import Diagram, parse_diagram
from eduspark_core.redraw import CallLater
from eduspark_core.renderers import DiagramRenderer, create_renderer
from eduspark_core.validation import validate_diagram, validation_summary
from eduspark_core.dom import Window

from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a unique session ID."""
    return f"s{uuid.uuid4().hex[:8]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """A mounted diagram with its own viewport."""
    id: str
    diagram: Diagram
    window: Window
    renderer: DiagramRenderer
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "type": self.renderer.kind,
            "title": self.diagram.title,
            "nodes": len(self.renderer.node_ids),
            "connectors": len(self.renderer.connectors),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def to_state(self) -> dict:
        return {
            "id": self.id,
            "viewport": {"width": self.window.inner_width, "height": self.window.inner_height},
            "fullscreen": self.window.document.fullscreen_element is not None,
            **self.renderer.snapshot(),
        }


class SessionNotFoundError(KeyError):
    """Raised for operations on an unknown session id."""


class SessionLimitError(ValueError):
    """Raised when creating a session would exceed `max_sessions`."""


class SessionManager:
    """
    Owns every open session.

    Features:
    - O(1) session lookups via an index dictionary
    - Change callbacks (session_id, reason) for real-time sync
    - Configurable capacity; the oldest session is never evicted silently,
      creation fails instead
    """

    def __init__(self, config: Optional[Settings] = None, call_later: Optional[CallLater] = None):
        self._settings = config or default_settings
        self._sessions: dict[str, Session] = {}
        self._on_change_callbacks: list[Callable[[str, str], None]] = []
        self.call_later = call_later

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[str, str], None]):
        """Register a callback for session changes."""
        self._on_change_callbacks.append(callback)

    def off_change(self, callback: Callable[[str, str], None]):
        """Remove a previously registered change callback."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self, session_id: str, reason: str):
        """Notify all registered callbacks of a change."""
        for callback in self._on_change_callbacks:
            try:
                callback(session_id, reason)
            except Exception:
                logger.exception("Change callback failed for session %s", session_id)

    # --- Properties ---

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # --- Session Lifecycle ---

    def create_session(
        self,
        data: dict,
        diagram_type: Optional[str] = None,
        viewport: Optional[tuple[float, float]] = None,
    ) -> Session:
        """
        Parse a generated diagram and mount it.

        Raises:
            DiagramFormatError: if the payload is not a diagram
            SessionLimitError: if the session limit is reached
        """
        if len(self._sessions) >= self._settings.max_sessions:
            raise SessionLimitError(f"Session limit reached ({self._settings.max_sessions})")

        diagram = parse_diagram(data, diagram_type)
        width, height = viewport or (self._settings.viewport_width, self._settings.viewport_height)
        window = Window(width, height)
        renderer = create_renderer(
            diagram,
            canvas_width=self._settings.canvas_width,
            canvas_height=self._settings.canvas_height,
            call_later=self.call_later,
            fullscreen_delay=self._settings.fullscreen_delay,
        )
        renderer.mount(window)

        session = Session(id=generate_session_id(), diagram=diagram, window=window, renderer=renderer)
        renderer.on_redraw(lambda r: self._on_redraw(session.id))
        self._sessions[session.id] = session
        logger.info("Created session %s (%s)", session.id, renderer.kind)
        self._notify_change(session.id, "created")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def close_session(self, session_id: str) -> bool:
        """Unmount and forget a session."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.renderer.unmount()
        logger.info("Closed session %s", session_id)
        self._notify_change(session_id, "closed")
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close_session(session_id)

    # --- Environment Events ---

    def pointer(
        self,
        session_id: str,
        event_type: str,
        x: float,
        y: float,
        node_id: Optional[str] = None,
        pointer_type: str = "mouse",
        pointer_id: int = 1,
    ) -> Session:
        """
        Feed one pointer event into the session.

        `pointerdown` targets `node_id` (or the container when omitted);
        move and up events are global.

        Raises:
            SessionNotFoundError: unknown session
            ValueError: unknown event type or node
        """
        session = self.require_session(session_id)
        document = session.window.document
        if event_type == "pointerdown":
            target: Any = session.renderer.container
            if node_id is not None:
                target = session.renderer.node_element(node_id)
                if target is None:
                    raise ValueError(f"Unknown node: {node_id}")
            document.pointer_down(target, x, y, pointer_type, pointer_id)
        elif event_type == "pointermove":
            document.pointer_move(x, y, pointer_type, pointer_id)
        elif event_type == "pointerup":
            document.pointer_up(x, y, pointer_type, pointer_id)
        else:
            raise ValueError(f"Unknown pointer event type: {event_type}")
        session.updated_at = _utcnow()
        return session

    def move_node(self, session_id: str, node_id: str, left: float, top: float) -> Session:
        """Drag a node to (left, top) in one full gesture."""
        session = self.require_session(session_id)
        if session.renderer.node_element(node_id) is None:
            raise ValueError(f"Unknown node: {node_id}")
        session.renderer.drag_node(node_id, left, top)
        session.updated_at = _utcnow()
        return session

    def resize(self, session_id: str, width: float, height: float) -> Session:
        session = self.require_session(session_id)
        session.window.resize(width, height)
        session.updated_at = _utcnow()
        return session

    def set_fullscreen(self, session_id: str, enabled: bool) -> Session:
        session = self.require_session(session_id)
        document = session.window.document
        if enabled:
            document.request_fullscreen(session.renderer.container)
        else:
            document.exit_fullscreen()
        session.updated_at = _utcnow()
        return session

    # --- Output ---

    def render_svg(self, session_id: str) -> str:
        return render_svg(self.require_session(session_id).renderer)

    def validate(self, session_id: str) -> dict:
        session = self.require_session(session_id)
        issues = validate_diagram(session.diagram)
        return {
            "issues": [issue.to_dict() for issue in issues],
            "summary": validation_summary(issues),
        }

    def _on_redraw(self, session_id: str) -> None:
        self._notify_change(session_id, "redrawn")


# Global instance
session_manager = SessionManager()
