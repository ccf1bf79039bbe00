"""Session engine: drives one conversation through a project graph.

States:

- ``awaiting_emission``: a block is selected, its delayed send has not fired
- ``awaiting_input``: the last message went out, waiting for the user
- ``terminal``: the graph could not be resolved or is exhausted

Emission runs as a cancellable asyncio task. Input is serialized per session:
``receive_message`` holds a lock and first waits for the pending emission, so
a reply is always matched against the block the user has actually seen.
"""

import asyncio
import uuid
from typing import Any

from tilbot.config.models import AutoBlock, BaseBlock, GroupBlock, Project
from tilbot.config.settings import Settings
from tilbot.config.validation import validate_project
from tilbot.core.constants import EngineState
from tilbot.core.errors import GraphResolutionError, SessionClosedError, SessionError
from tilbot.core.interfaces import IDataProvider
from tilbot.core.message_sink import MessageSink
from tilbot.core.templating import render_content
from tilbot.core.types import BotMessage, SessionSnapshot
from tilbot.data.provider import GuardedDataProvider, NullDataProvider
from tilbot.engine.matcher import Match, Matcher
from tilbot.engine.navigator import Navigator
from tilbot.engine.variables import VariableStore
from tilbot.observability.logging import ContextLogger


class SessionEngine:
    """Runs one session of a project.

    The project is validated on construction, so a malformed document is
    rejected before anything is emitted. The project itself is never mutated
    and may be shared between engines.
    """

    def __init__(
        self,
        project: Project,
        sink: MessageSink,
        data_provider: IDataProvider | None = None,
        settings: Settings | None = None,
        session_id: str | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.project = validate_project(project, self.settings.limits.max_group_depth)
        self.sink = sink
        self.session_id = session_id or uuid.uuid4().hex
        self.variables = VariableStore()
        self.navigator = Navigator(self.project)
        self.matcher = Matcher(
            self.variables, GuardedDataProvider(data_provider or NullDataProvider())
        )
        self.state = EngineState.awaiting_emission

        self._log = ContextLogger(__name__).with_context(session_id=self.session_id)
        self._idle = asyncio.Event()
        self._input_lock = asyncio.Lock()
        self._emission: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[bool] | None = None
        self._started = False
        self._closed = False

    @property
    def current_block_id(self) -> str | None:
        return self.navigator.current_block_id

    @property
    def path(self) -> list[str]:
        return self.navigator.path

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Schedule emission of the project's starting block."""
        if self._closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")
        if self._started:
            raise SessionError(f"Session {self.session_id} already started")
        self._started = True
        self._log.info(f"Session started at block {self.current_block_id}")
        self._schedule(None)

    async def receive_message(self, utterance: str) -> bool:
        """Match a user utterance and move the session along.

        Returns:
            True if the utterance caused a transition, False if it stalled.

        Raises:
            SessionClosedError: If the session has been closed
        """
        if self._closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")
        if not self._started:
            raise SessionError(f"Session {self.session_id} has not started")

        async with self._input_lock:
            await self._idle.wait()
            if self._closed or self.state is EngineState.terminal:
                self._log.debug(f"Ignoring input in state {self.state.value}")
                return False

            task = asyncio.create_task(self._handle_input(utterance))
            self._inflight = task
            try:
                return await task
            except asyncio.CancelledError:
                if self._closed and task.cancelled():
                    return False
                raise
            finally:
                self._inflight = None

    async def send_message(self, block: BaseBlock, payload: Any = None) -> BotMessage:
        """Render ``block`` and hand it to the sink."""
        message = BotMessage(
            type=block.type,
            content=render_content(block.content, payload, self.variables.as_dict()),
            params=block.params(),
        )
        await self.sink.send(message)
        self._log.debug(f"Delivered {block.type} block {block.id}")
        return message

    async def wait_idle(self) -> EngineState:
        """Wait until the pending emission, if any, has been delivered."""
        await self._idle.wait()
        return self.state

    async def close(self) -> None:
        """Tear the session down; pending timers and lookups are cancelled."""
        if self._closed:
            return
        self._closed = True

        current = asyncio.current_task()
        pending = [
            task
            for task in (self._emission, self._inflight)
            if task is not None and not task.done() and task is not current
        ]
        for task in pending:
            task.cancel()
        self._idle.set()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._log.info("Session closed")

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            state=self.state,
            current_block_id=self.current_block_id,
            path=self.path,
            variables=self.variables.as_dict(),
        )

    async def _handle_input(self, utterance: str) -> bool:
        try:
            block = self.navigator.resolve()
        except GraphResolutionError as e:
            await self._fail(e)
            return False

        match = await self.matcher.match(block, utterance)
        if not match and not block.is_exhaustive:
            match = await self.matcher.match_triggers(self.navigator.triggers, utterance)

        if not match:
            self._log.debug(f"No transition from block {block.id} for {utterance!r}")
            return False

        return await self._transition(block, match)

    async def _transition(self, block: BaseBlock, match: Match) -> bool:
        connector = match.connector
        assert connector is not None and connector.target is not None

        if match.trigger is not None:
            path, from_id = match.trigger.path, match.trigger.block.id
        else:
            path, from_id = None, block.id

        try:
            move = self.navigator.plan(connector.target, from_id, path)
        except GraphResolutionError as e:
            await self._fail(e)
            return False

        if move is None:
            self._log.debug(f"Edge {from_id} -> {connector.target} does not resolve; staying put")
            return False

        # Events only fire for edges that are actually taken
        await self.matcher.apply_events(connector)
        target = self.navigator.commit(move)

        self._log.info(f"Transition {block.id} -> {target} (path={self.path})")
        self._schedule(match.payload)
        return True

    def _schedule(self, payload: Any) -> None:
        if self._emission is not None and not self._emission.done():
            self._emission.cancel()
        self.state = EngineState.awaiting_emission
        self._idle.clear()
        self._emission = asyncio.create_task(self._emit(payload))

    async def _emit(self, payload: Any) -> None:
        try:
            block = self.navigator.resolve()
            await self._sleep(block.delay)
            while True:
                while isinstance(block, GroupBlock):
                    self.navigator.enter_group(block)
                    block = self.navigator.resolve()

                await self.send_message(block, payload)
                if self._closed:
                    return
                if not isinstance(block, AutoBlock):
                    break

                if block.next_target is None:
                    self._log.debug(f"Auto block {block.id} has no target; stalling")
                    break

                await self._sleep(self.settings.delays.auto_settle)
                if self.navigator.follow_auto_chain(block) is None:
                    break
                payload = None
                block = self.navigator.resolve()
                await self._sleep(block.delay)
        except GraphResolutionError as e:
            await self._fail(e)
            return
        except Exception:
            self._log.exception("Emission failed")
            self.state = EngineState.terminal
            self._idle.set()
            return

        self._settle(block)

    def _settle(self, block: BaseBlock) -> None:
        exhausted = not block.connectors and not self.navigator.triggers
        self.state = EngineState.terminal if exhausted else EngineState.awaiting_input
        if exhausted:
            self._log.info(f"Conversation ended at block {block.id}")
        self._idle.set()

    async def _fail(self, error: GraphResolutionError) -> None:
        self.state = EngineState.terminal
        self._idle.set()
        self._log.error(f"Session failed: {error}")
        await self.sink.fail(error)

    async def _sleep(self, seconds: float) -> None:
        delay = seconds * self.settings.delays.time_scale
        if delay > 0:
            await asyncio.sleep(delay)
        else:
            await asyncio.sleep(0)

