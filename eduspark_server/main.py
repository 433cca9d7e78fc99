"""
EduSpark Diagram Service - FastAPI Application

This is the main entry point for the diagram service.
It provides:
- REST API to mount generated diagrams as sessions and interact with them
  (pointer gestures, viewport resize, fullscreen, SVG export, validation)
- WebSocket endpoint that announces session changes in real time
- CORS configuration for the local frontend
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from eduspark_core import ConceptKind, DiagramFormatError, DiagramType, FlowKind, parse_diagram
from eduspark_core.validation import validate_diagram, validation_summary

from .session_manager import SessionLimitError, SessionNotFoundError, session_manager
from .settings import configure_logging, settings
from .websocket_manager import ws_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    session_manager.on_change(ws_manager.queue_change)
    # Deferred fullscreen redraws run on the server's event loop
    session_manager.call_later = asyncio.get_running_loop().call_later

    broadcaster_task = asyncio.create_task(ws_manager.run_broadcaster())

    yield

    # Cleanup
    session_manager.close_all()
    session_manager.off_change(ws_manager.queue_change)
    session_manager.call_later = None
    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="EduSpark Diagram Service",
    description="Interactive concept maps, mind maps and flowcharts for generated lessons",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return JSONResponse(status_code=404, content={"detail": f"Session not found: {exc.args[0]}"})


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "sessions": session_manager.session_count,
        "connections": ws_manager.connection_count,
    }


# --- Sessions ---

class CreateSessionRequest(BaseModel):
    diagram: dict[str, Any]
    type: Optional[str] = None
    viewport_width: Optional[float] = Field(default=None, gt=0)
    viewport_height: Optional[float] = Field(default=None, gt=0)


@app.post("/api/sessions")
async def create_session(request: CreateSessionRequest):
    """Mount a generated diagram."""
    viewport = None
    if request.viewport_width and request.viewport_height:
        viewport = (request.viewport_width, request.viewport_height)
    try:
        session = session_manager.create_session(request.diagram, request.type, viewport)
    except DiagramFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionLimitError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "session": session.to_state()}


@app.get("/api/sessions")
async def list_sessions():
    """List open sessions."""
    return {"success": True, "sessions": [s.to_summary() for s in session_manager.list_sessions()]}


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    """Current frame: node positions and connector paths."""
    session = session_manager.require_session(session_id)
    return {"success": True, "session": session.to_state()}


@app.delete("/api/sessions/{session_id}")
async def close_session(session_id: str):
    """Unmount a session."""
    if session_manager.close_session(session_id):
        return {"success": True}
    raise HTTPException(status_code=404, detail="Session not found")


# --- Interaction ---

class PointerRequest(BaseModel):
    type: str  # pointerdown, pointermove, pointerup
    x: float
    y: float
    node_id: Optional[str] = None
    pointer_type: str = "mouse"
    pointer_id: int = 1


@app.post("/api/sessions/{session_id}/pointer")
async def pointer_event(session_id: str, request: PointerRequest):
    """Feed a pointer event (viewport coordinates) into the session."""
    try:
        session = session_manager.pointer(
            session_id,
            request.type,
            request.x,
            request.y,
            node_id=request.node_id,
            pointer_type=request.pointer_type,
            pointer_id=request.pointer_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "session": session.to_state()}


class MoveNodeRequest(BaseModel):
    left: float
    top: float


@app.post("/api/sessions/{session_id}/nodes/{node_id}/move")
async def move_node(session_id: str, node_id: str, request: MoveNodeRequest):
    """Drag a node to a container position in a single gesture."""
    try:
        session = session_manager.move_node(session_id, node_id, request.left, request.top)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "session": session.to_state()}


class ResizeRequest(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


@app.post("/api/sessions/{session_id}/resize")
async def resize_viewport(session_id: str, request: ResizeRequest):
    """Resize the session's viewport."""
    session = session_manager.resize(session_id, request.width, request.height)
    return {"success": True, "session": session.to_state()}


class FullscreenRequest(BaseModel):
    enabled: bool = True


@app.post("/api/sessions/{session_id}/fullscreen")
async def toggle_fullscreen(session_id: str, request: FullscreenRequest):
    """Enter or leave fullscreen."""
    session = session_manager.set_fullscreen(session_id, request.enabled)
    return {"success": True, "session": session.to_state()}


# --- Output ---

@app.get("/api/sessions/{session_id}/svg")
async def export_svg(session_id: str):
    """SVG snapshot of the current frame."""
    svg = session_manager.render_svg(session_id)
    return Response(content=svg, media_type="image/svg+xml")


@app.get("/api/sessions/{session_id}/validate")
async def validate_session(session_id: str):
    """Structural issues of the session's diagram."""
    return {"success": True, **session_manager.validate(session_id)}


class ValidateRequest(BaseModel):
    diagram: dict[str, Any]
    type: Optional[str] = None


@app.post("/api/validate")
async def validate_payload(request: ValidateRequest):
    """Validate a generated diagram without mounting it."""
    try:
        diagram = parse_diagram(request.diagram, request.type)
    except DiagramFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    issues = validate_diagram(diagram)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues),
    }


# --- Enums for Frontend ---

@app.get("/api/enums/types")
async def get_types():
    """Diagram types and node kinds."""
    return {
        "diagram_types": [t.value for t in DiagramType],
        "concept_kinds": [k.value for k in ConceptKind],
        "flow_kinds": [k.value for k in FlowKind],
    }


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive session_redrawn / session_closed events.
    """
    await ws_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception:
        logger.exception("WebSocket error")
        await ws_manager.disconnect(websocket)


def run():
    """Run the service with uvicorn."""
    import uvicorn
    configure_logging()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
