"""API Models - Pydantic models for FastAPI endpoints.

Defines request and response schemas for the Tilbot REST API.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from tilbot.core.constants import EngineState
from tilbot.core.types import BotMessage


class CreateSessionRequest(BaseModel):
    """Request model for opening a polled session."""

    session_id: str | None = Field(
        default=None, description="Session id to use; generated when omitted"
    )
    wait: bool = Field(default=True, description="Wait for the first message before answering")


class MessageRequest(BaseModel):
    """Request model for sending a user message."""

    message: str = Field(min_length=1, description="User's input message")
    wait: bool = Field(
        default=True, description="Wait until the reply has been emitted before answering"
    )


class SessionResponse(BaseModel):
    """State of one session plus the messages delivered since the last poll."""

    session_id: str
    state: EngineState
    current_block_id: str | None
    path: list[str] = Field(default_factory=list)
    variables: dict[str, Any] = Field(default_factory=dict)
    messages: list[BotMessage] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Response model for a processed user message."""

    session_id: str
    transitioned: bool = Field(description="Whether the message moved the conversation")
    state: EngineState
    messages: list[BotMessage] = Field(default_factory=list)


class MessagesResponse(BaseModel):
    """Response model for polling pending messages."""

    session_id: str
    state: EngineState
    messages: list[BotMessage] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """Response model for listing connected sessions."""

    sessions: list[str]
    count: int


class CloseResponse(BaseModel):
    """Response model for closing a session."""

    success: bool
    message: str


class ComponentStatus(BaseModel):
    """Status of a single component."""

    name: str
    status: Literal["healthy", "degraded", "unhealthy"]
    message: str | None = None


class HealthResponse(BaseModel):
    """Health check response with component details."""

    status: Literal["healthy", "starting", "degraded", "unhealthy"]
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    components: dict[str, ComponentStatus] | None = None


class ReadinessResponse(BaseModel):
    """Readiness probe response."""

    ready: bool
    message: str
    checks: dict[str, bool] | None = None


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(description="Full version string")
    major: int = Field(description="Major version number")
    minor: int = Field(description="Minor version number")
    patch: str = Field(description="Patch version (may include suffix)")
