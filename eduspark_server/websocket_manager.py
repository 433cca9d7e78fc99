"""
WebSocket Manager - Handles real-time connections and session broadcasts.

SessionManager reports changes synchronously (`queue_change`); a
background task (`run_broadcaster`) sends them to every viewer. Viewers
are only told *that* a session changed and fetch the new frame themselves,
so several queued changes of one session collapse into a single message.
"""
from fastapi import WebSocket
from typing import Optional, Set
import asyncio
import json
import logging

logger = logging.getLogger(__name__)

# A queued change is replaced only by one at least as strong
REASON_PRIORITY = {"redrawn": 0, "created": 1, "closed": 2}


class WebSocketManager:
    """
    Manages WebSocket connections and session change broadcasts.

    Failed sends drop the connection instead of interrupting the broadcast.
    """

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._pending: dict[str, str] = {}
        # Created by run_broadcaster, on the loop that serves the app
        self._wakeup: Optional[asyncio.Event] = None

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("WebSocket connected. Total connections: %d", len(self._connections))

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("WebSocket disconnected. Total connections: %d", len(self._connections))

    # --- Session changes ---

    def queue_change(self, session_id: str, reason: str):
        """
        Record a session change (SessionManager change callback).

        Safe to call from sync code running on the app's event loop.
        """
        if reason not in REASON_PRIORITY:
            raise ValueError(f"Unknown session change: {reason}")
        current = self._pending.get(session_id)
        if current is None or REASON_PRIORITY[reason] >= REASON_PRIORITY[current]:
            self._pending[session_id] = reason
        if self._wakeup is not None:
            self._wakeup.set()

    @property
    def pending_changes(self) -> dict[str, str]:
        return dict(self._pending)

    async def flush(self) -> int:
        """Broadcast every queued change; returns how many were sent."""
        pending, self._pending = self._pending, {}
        for session_id, reason in pending.items():
            await self.broadcast({
                "type": f"session_{reason}",
                "session_id": session_id
            })
        return len(pending)

    async def run_broadcaster(self):
        """Background task: flush queued changes whenever new ones arrive."""
        self._wakeup = asyncio.Event()
        if self._pending:
            self._wakeup.set()
        try:
            while True:
                await self._wakeup.wait()
                self._wakeup.clear()
                await self.flush()
        finally:
            self._wakeup = None

    # --- Transport ---

    async def broadcast(self, message: dict):
        """Broadcast a message to all connected clients."""
        if not self._connections:
            return

        message_text = json.dumps(message)
        failed: Set[WebSocket] = set()

        async with self._lock:
            for websocket in self._connections:
                try:
                    await websocket.send_text(message_text)
                except Exception:
                    logger.debug("Dropping WebSocket after failed send", exc_info=True)
                    failed.add(websocket)

            self._connections -= failed

    @property
    def connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self._connections)


# Global instance
ws_manager = WebSocketManager()
