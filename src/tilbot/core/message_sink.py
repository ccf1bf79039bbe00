"""MessageSink interface for outbound message delivery.

This module defines the abstract interface and implementations through which
a session hands its bot messages (and fatal errors) to the transport.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from tilbot.core.errors import TilbotError, get_safe_error_message
from tilbot.core.types import BotMessage

logger = logging.getLogger(__name__)


class MessageSink(ABC):
    """Interface for delivering messages of one session to the user (DIP)."""

    @abstractmethod
    async def send(self, message: BotMessage) -> None:
        """Deliver a bot message."""
        ...

    async def fail(self, error: TilbotError) -> None:
        """Report an error that ended the session."""
        logger.error(f"Session failed: {error}")


class BufferedMessageSink(MessageSink):
    """Buffers messages for testing or polled delivery."""

    def __init__(self) -> None:
        self.messages: list[BotMessage] = []
        self.errors: list[TilbotError] = []

    async def send(self, message: BotMessage) -> None:
        """Append message to buffer."""
        self.messages.append(message)

    async def fail(self, error: TilbotError) -> None:
        self.errors.append(error)

    def drain(self) -> list[BotMessage]:
        """Return and forget the buffered messages."""
        drained, self.messages = self.messages, []
        return drained

    def clear(self) -> None:
        """Clear the message buffer."""
        self.messages.clear()
        self.errors.clear()


class CallbackMessageSink(MessageSink):
    """Hands every message to a plain callable, sync or async."""

    def __init__(
        self,
        callback: Callable[[dict[str, Any]], Any],
        on_error: Callable[[TilbotError], Any] | None = None,
    ) -> None:
        self._callback = callback
        self._on_error = on_error

    async def send(self, message: BotMessage) -> None:
        result = self._callback(message.model_dump())
        if inspect.isawaitable(result):
            await result

    async def fail(self, error: TilbotError) -> None:
        if self._on_error is None:
            await super().fail(error)
            return
        result = self._on_error(error)
        if inspect.isawaitable(result):
            await result


class WebSocketMessageSink(MessageSink):
    """WebSocket-based real-time delivery."""

    def __init__(self, websocket: Any) -> None:
        self._ws = websocket

    async def send(self, message: BotMessage) -> None:
        """Send message via WebSocket."""
        await self._ws.send_json({"event": "bot message", "data": message.model_dump()})

    async def fail(self, error: TilbotError) -> None:
        """Push the error type and a client-safe message."""
        await self._ws.send_json(
            {
                "event": "error",
                "data": {"error": type(error).__name__, "message": get_safe_error_message(error)},
            }
        )
