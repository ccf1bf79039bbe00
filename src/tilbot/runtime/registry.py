"""Session registry owned by the transport layer.

Maps connection ids to running engines. The transport calls ``connect`` when a
client arrives, forwards every utterance through ``user_input`` and calls
``disconnect`` when the client goes away.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from tilbot.config.models import Project
from tilbot.config.settings import Settings
from tilbot.config.validation import validate_project
from tilbot.core.errors import SessionExistsError, SessionNotFoundError
from tilbot.core.interfaces import IDataProvider
from tilbot.core.message_sink import MessageSink
from tilbot.engine.session import SessionEngine

logger = logging.getLogger(__name__)

# Receives client log events: (session_id, payload)
LogCallback = Callable[[str, Any], Any]


class SessionRegistry:
    """Owns the engines of every connected session.

    All sessions share the project and the data provider; each one gets its
    own sink, variable store and navigation state.
    """

    def __init__(
        self,
        project: Project,
        settings: Settings | None = None,
        data_provider: IDataProvider | None = None,
        on_log: LogCallback | None = None,
    ):
        """
        Initialize SessionRegistry.

        Args:
            project: Validated project shared by all sessions
            settings: Runtime settings (delays, limits)
            data_provider: Provider answering table lookups
            on_log: Callback receiving opaque client log events
        """
        self.settings = settings or Settings()
        self.project = validate_project(project, self.settings.limits.max_group_depth)
        self.data_provider = data_provider
        self.on_log = on_log
        self._sessions: dict[str, SessionEngine] = {}

    async def connect(self, session_id: str, sink: MessageSink) -> SessionEngine:
        """Create and start the engine of a new session.

        Raises:
            SessionExistsError: If ``session_id`` is already connected
        """
        if session_id in self._sessions:
            raise SessionExistsError(f"Session {session_id} already exists")

        engine = SessionEngine(
            self.project,
            sink,
            data_provider=self.data_provider,
            settings=self.settings,
            session_id=session_id,
        )
        self._sessions[session_id] = engine
        await engine.start()
        logger.info(f"Session {session_id} connected ({len(self._sessions)} active)")
        return engine

    async def user_input(self, session_id: str, utterance: str) -> bool:
        """Hand an utterance to its session; True if it caused a transition."""
        return await self.get(session_id).receive_message(utterance)

    async def log(self, session_id: str, payload: Any) -> None:
        """Forward a client log event without interpreting it."""
        if self.on_log is None:
            logger.info(f"Client log from {session_id}: {payload}")
            return
        result = self.on_log(session_id, payload)
        if inspect.isawaitable(result):
            await result

    async def disconnect(self, session_id: str) -> None:
        """Close and forget a session; unknown ids are ignored."""
        engine = self._sessions.pop(session_id, None)
        if engine is None:
            logger.debug(f"Disconnect for unknown session {session_id}")
            return
        await engine.close()
        logger.info(f"Session {session_id} disconnected ({len(self._sessions)} active)")

    def get(self, session_id: str) -> SessionEngine:
        """
        Raises:
            SessionNotFoundError: If no session is registered under the id
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Session {session_id} not found") from None

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    async def close_all(self) -> None:
        """Close every session, e.g. on server shutdown."""
        for session_id in list(self._sessions):
            await self.disconnect(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
