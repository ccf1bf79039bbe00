"""Tilbot FastAPI Application.

Hosts many sessions of one project. Clients either hold a WebSocket open
(``/ws``) and get bot messages pushed, or use the REST endpoints and poll for
pending messages.
"""

import json
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, FastAPI, Request, WebSocket, WebSocketDisconnect

from tilbot.__version__ import __version__, get_version_info
from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.core.errors import SessionExistsError, TilbotError
from tilbot.core.message_sink import BufferedMessageSink, WebSocketMessageSink
from tilbot.core.types import BotMessage
from tilbot.data import create_data_provider
from tilbot.engine.session import SessionEngine
from tilbot.observability.logging import setup_logging
from tilbot.runtime.registry import SessionRegistry
from tilbot.server.dependencies import RegistryDep
from tilbot.server.errors import (
    get_safe_error_message,
    global_exception_handler,
    tilbot_exception_handler,
)
from tilbot.server.models import (
    CloseResponse,
    ComponentStatus,
    CreateSessionRequest,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    MessagesResponse,
    ReadinessResponse,
    SessionListResponse,
    SessionResponse,
    VersionResponse,
)

logger = logging.getLogger(__name__)

# Display acknowledgements; desktop clients send the spaced form
ACK_EVENTS = frozenset({"message sent", "message_sent"})

router = APIRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - load the project on startup, close sessions on shutdown."""
    registry: SessionRegistry | None = getattr(app.state, "registry", None)
    if registry is not None:
        # Registry injected by create_app
        yield
        await registry.close_all()
        return

    from dotenv import load_dotenv

    load_dotenv()

    config_path = os.environ.get("TILBOT_CONFIG_PATH")
    if not config_path:
        default_path = "tilbot.yaml"
        if os.path.exists(default_path):
            config_path = default_path

    if not config_path:
        logger.warning(
            "TILBOT_CONFIG_PATH not set and tilbot.yaml not found. App will start unconfigured."
        )
        yield
        return

    logger.info(f"Loading config from {config_path}")
    try:
        config = ConfigLoader.load(config_path)
        setup_logging(config.settings.logging.level, config.settings.logging.file)
        project = ProjectLoader.load(config.project, config.settings.limits.max_group_depth)
    except (TilbotError, FileNotFoundError) as e:
        logger.error(f"Failed to load project: {e}")
        yield
        return

    registry = SessionRegistry(
        project,
        config.settings,
        data_provider=create_data_provider(config.settings.data, project),
    )
    app.state.registry = registry
    logger.info(f"Project {config.project} loaded and ready.")
    try:
        yield
    finally:
        logger.info("Closing sessions...")
        await registry.close_all()
        app.state.registry = None


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe."""
    registry = getattr(request.app.state, "registry", None)

    components: dict[str, ComponentStatus] = {}
    status: Literal["healthy", "starting", "degraded", "unhealthy"] = "healthy"

    if registry is None:
        status = "starting"
    else:
        components["registry"] = ComponentStatus(
            name="registry", status="healthy", message=f"{len(registry)} active sessions"
        )

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now().isoformat(),
        components=components,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe."""
    registry = getattr(request.app.state, "registry", None)

    if registry is None:
        return ReadinessResponse(
            ready=False, message="Project not loaded", checks={"project": False}
        )

    return ReadinessResponse(ready=True, message="Service is ready", checks={"project": True})


@router.get("/version", response_model=VersionResponse)
def get_version() -> VersionResponse:
    """Get detailed version information."""
    info = get_version_info()
    return VersionResponse(
        version=str(info["full"]),
        major=int(info["major"]),
        minor=int(info["minor"]),
        patch=str(info["patch"]),
    )


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: CreateSessionRequest, registry: RegistryDep) -> SessionResponse:
    """Open a polled session and start the conversation."""
    session_id = request.session_id or uuid.uuid4().hex
    engine = await registry.connect(session_id, BufferedMessageSink())
    if request.wait:
        await engine.wait_idle()
    return _session_response(engine, drain=True)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(registry: RegistryDep) -> SessionListResponse:
    """List connected sessions."""
    session_ids = registry.session_ids
    return SessionListResponse(sessions=session_ids, count=len(session_ids))


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, registry: RegistryDep) -> SessionResponse:
    """Inspect a session without consuming its pending messages."""
    return _session_response(registry.get(session_id), drain=False)


@router.post("/sessions/{session_id}/messages", response_model=MessageResponse)
async def send_message(
    session_id: str,
    request: MessageRequest,
    registry: RegistryDep,
) -> MessageResponse:
    """Send a user message and collect the replies."""
    engine = registry.get(session_id)
    transitioned = await registry.user_input(session_id, request.message)
    if request.wait:
        await engine.wait_idle()
    return MessageResponse(
        session_id=session_id,
        transitioned=transitioned,
        state=engine.state,
        messages=_drain(engine),
    )


@router.get("/sessions/{session_id}/messages", response_model=MessagesResponse)
async def poll_messages(session_id: str, registry: RegistryDep) -> MessagesResponse:
    """Return and consume the messages delivered since the last poll."""
    engine = registry.get(session_id)
    return MessagesResponse(session_id=session_id, state=engine.state, messages=_drain(engine))


@router.delete("/sessions/{session_id}", response_model=CloseResponse)
async def close_session(session_id: str, registry: RegistryDep) -> CloseResponse:
    """Close a session."""
    registry.get(session_id)
    await registry.disconnect(session_id)
    return CloseResponse(success=True, message=f"Session {session_id} closed")


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, session_id: str | None = None) -> None:
    """Push-style session.

    Client frames are JSON objects ``{"event": ..., "data": ...}``:
    ``user_message`` carries an utterance, ``log`` an opaque client log entry
    and ``message sent`` (or ``message_sent``) acknowledges that a bot
    message was displayed.
    """
    registry: SessionRegistry | None = getattr(websocket.app.state, "registry", None)
    if registry is None:
        await websocket.close(code=1013)
        return

    await websocket.accept()
    session_id = session_id or uuid.uuid4().hex
    try:
        await registry.connect(session_id, WebSocketMessageSink(websocket))
    except SessionExistsError as e:
        await websocket.send_json(
            {
                "event": "error",
                "data": {"error": type(e).__name__, "message": get_safe_error_message(e)},
            }
        )
        await websocket.close(code=1008)
        return

    try:
        while True:
            frame = _parse_frame(await websocket.receive_text())
            if frame is None:
                continue
            event, data = frame
            if event == "user_message":
                await registry.user_input(session_id, str(data))
            elif event == "log":
                await registry.log(session_id, data)
            elif event in ACK_EVENTS:
                logger.debug(f"Session {session_id} acknowledged a message")
            else:
                logger.warning(f"Unknown event {event!r} from session {session_id}")
    except WebSocketDisconnect:
        logger.debug(f"WebSocket for session {session_id} disconnected")
    except TilbotError as e:
        logger.warning(f"Session {session_id} aborted: {e}")
        await websocket.send_json(
            {
                "event": "error",
                "data": {"error": type(e).__name__, "message": get_safe_error_message(e)},
            }
        )
    finally:
        await registry.disconnect(session_id)


def _parse_frame(text: str) -> tuple[str, Any] | None:
    try:
        frame = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Ignoring WebSocket frame that is not JSON")
        return None
    if not isinstance(frame, dict) or "event" not in frame:
        logger.warning("Ignoring WebSocket frame without an event")
        return None
    return str(frame["event"]), frame.get("data")


def _drain(engine: SessionEngine) -> list[BotMessage]:
    if isinstance(engine.sink, BufferedMessageSink):
        return engine.sink.drain()
    return []


def _session_response(engine: SessionEngine, drain: bool) -> SessionResponse:
    snapshot = engine.snapshot()
    return SessionResponse(
        **snapshot.model_dump(),
        messages=_drain(engine) if drain else [],
    )


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    """Factory function.

    Args:
        registry: Pre-built registry; when omitted the lifespan loads the
            project named by ``TILBOT_CONFIG_PATH`` (or ``./tilbot.yaml``)
    """
    app = FastAPI(
        title="Tilbot Dialogue Engine",
        description="Runs block-graph conversations over WebSocket and REST",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.add_exception_handler(TilbotError, tilbot_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.include_router(router)
    return app


app = create_app()
