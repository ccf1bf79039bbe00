"""Core type definitions."""

from collections.abc import Mapping
from typing import Any, TypeAlias

from pydantic import BaseModel, Field

from tilbot.core.constants import EngineState

# A table row fetched from an external data provider
Row: TypeAlias = Mapping[str, Any]


class BotMessage(BaseModel):
    """One outbound message, as handed to the transport."""

    type: str = Field(description="Block type that produced the message")
    content: str = Field(default="", description="Rendered message text")
    params: dict[str, Any] = Field(default_factory=dict, description="Type-specific payload")


class SessionSnapshot(BaseModel):
    """Read-only view of a session's position and variables."""

    session_id: str
    state: EngineState
    current_block_id: str | None
    path: list[str] = Field(default_factory=list)
    variables: dict[str, Any] = Field(default_factory=dict)
