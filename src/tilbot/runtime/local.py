"""Client-local single-session runtime.

Used when the engine runs next to the user instead of behind the server:
outbound messages go straight to a callback and table lookups go through the
host application's ``invoke(channel, payload)`` bridge.
"""

from collections.abc import Callable, Mapping
from typing import Any

from tilbot.config.loader import ProjectLoader
from tilbot.config.models import Project
from tilbot.config.settings import Settings
from tilbot.core.constants import EngineState
from tilbot.core.errors import TilbotError
from tilbot.core.interfaces import IDataProvider
from tilbot.core.message_sink import CallbackMessageSink
from tilbot.core.types import SessionSnapshot
from tilbot.data.bridge import BridgeDataProvider, BridgeInvoke
from tilbot.engine.session import SessionEngine


class LocalSession:
    """One session driven directly by its host.

    Example:
        async with LocalSession(project_json, on_message=print) as session:
            await session.send("Yes")
    """

    def __init__(
        self,
        project: Project | str | bytes | Mapping[str, Any],
        on_message: Callable[[dict[str, Any]], Any],
        invoke: BridgeInvoke | None = None,
        settings: Settings | None = None,
        data_provider: IDataProvider | None = None,
        on_error: Callable[[TilbotError], Any] | None = None,
        session_id: str | None = None,
    ):
        """
        Initialize LocalSession.

        Args:
            project: Project model, JSON text or parsed JSON document
            on_message: Called with every bot message as a plain dict
            invoke: Host bridge answering table queries
            settings: Runtime settings
            data_provider: Provider to use when no bridge is given
            on_error: Called with the error that ended the session

        Raises:
            ProjectError: If the project document is invalid
        """
        self.settings = settings or Settings()
        parsed = ProjectLoader.parse(project, max_group_depth=self.settings.limits.max_group_depth)
        if invoke is not None:
            data_provider = BridgeDataProvider(invoke)
        self.engine = SessionEngine(
            parsed,
            CallbackMessageSink(on_message, on_error),
            data_provider=data_provider,
            settings=self.settings,
            session_id=session_id,
        )

    @property
    def state(self) -> EngineState:
        return self.engine.state

    async def start(self) -> None:
        await self.engine.start()

    async def send(self, utterance: str) -> bool:
        """Pass a user utterance to the engine."""
        return await self.engine.receive_message(utterance)

    async def wait_idle(self) -> EngineState:
        return await self.engine.wait_idle()

    def snapshot(self) -> SessionSnapshot:
        return self.engine.snapshot()

    async def close(self) -> None:
        await self.engine.close()

    async def __aenter__(self) -> "LocalSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
