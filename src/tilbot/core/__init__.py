"""Core types, errors and interfaces shared by every Tilbot layer."""

from tilbot.core.constants import BlockType, EngineState
from tilbot.core.errors import (
    ConfigError,
    ExternalQueryError,
    GraphResolutionError,
    ProjectError,
    SessionClosedError,
    SessionError,
    TilbotError,
)
from tilbot.core.interfaces import IDataProvider
from tilbot.core.message_sink import (
    BufferedMessageSink,
    CallbackMessageSink,
    MessageSink,
    WebSocketMessageSink,
)
from tilbot.core.types import BotMessage, SessionSnapshot

__all__ = [
    "BlockType",
    "BotMessage",
    "BufferedMessageSink",
    "CallbackMessageSink",
    "ConfigError",
    "EngineState",
    "ExternalQueryError",
    "GraphResolutionError",
    "IDataProvider",
    "MessageSink",
    "ProjectError",
    "SessionClosedError",
    "SessionError",
    "SessionSnapshot",
    "TilbotError",
    "WebSocketMessageSink",
]
