"""Tilbot Server Module.

Provides the FastAPI transport (WebSocket and REST) for hosted sessions.
"""

from tilbot.server.api import app, create_app
from tilbot.server.models import (
    HealthResponse,
    MessageRequest,
    MessageResponse,
    SessionResponse,
)

__all__ = [
    "app",
    "create_app",
    "MessageRequest",
    "MessageResponse",
    "HealthResponse",
    "SessionResponse",
]
