"""Interactive chat runner for Tilbot CLI."""

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.core.constants import BlockType, EngineState
from tilbot.core.errors import TilbotError
from tilbot.data import create_data_provider
from tilbot.observability.logging import setup_logging
from tilbot.runtime.local import LocalSession

BANNER_ART = r"""
 _   _ _ _           _
| |_(_) | |__   ___ | |_
| __| | | '_ \ / _ \| __|
| |_| | | |_) | (_) | |_
 \__|_|_|_.__/ \___/ \__|
"""

# Block types whose options can be picked by number
CHOICE_TYPES = frozenset({BlockType.MC.value, BlockType.LIST.value, BlockType.AUTOCOMPLETE.value})


@dataclass
class ChatConfig:
    """Configuration for chat runner."""

    config_path: Path
    session_id: str | None = None
    no_delay: bool = False
    verbose: bool = False
    debug: bool = False


class ChatRunner:
    """Interactive chat session runner.

    Runs one local session of the configured project and renders every bot
    message on the console.
    """

    def __init__(self, config: ChatConfig, console: Console | None = None):
        """Initialize chat runner.

        Args:
            config: Chat configuration
            console: Console to render on
        """
        self.config = config
        self.console = console or Console()
        self.session: LocalSession | None = None
        self.session_id = config.session_id or f"cli_{uuid.uuid4().hex[:6]}"
        self.options: list[str] = []
        self._running = False

    async def setup(self) -> None:
        """Load config and project, then build the session.

        Raises:
            ConfigError: If config is invalid
            ProjectError: If the project is invalid
        """
        from dotenv import load_dotenv

        load_dotenv()

        tilbot_config = ConfigLoader.load(self.config.config_path)
        settings = tilbot_config.settings
        if self.config.no_delay:
            settings.delays.time_scale = 0

        if self.config.debug:
            level = "DEBUG"
        elif self.config.verbose:
            level = settings.logging.level
        else:
            level = "WARNING"
        setup_logging(level, settings.logging.file)

        project = ProjectLoader.load(tilbot_config.project, settings.limits.max_group_depth)
        if self.config.verbose:
            self.console.print(f"[dim]Loaded project: {tilbot_config.project}[/]")

        self.session = LocalSession(
            project,
            on_message=self.show_message,
            settings=settings,
            data_provider=create_data_provider(settings.data, project),
            on_error=self.show_error,
            session_id=self.session_id,
        )

    def show_message(self, message: dict[str, Any]) -> None:
        """Render one bot message."""
        if message["content"]:
            self.console.print(f"[bold blue]Bot > [/]{escape(message['content'])}")

        params = message.get("params") or {}
        self.options = list(params.get("options") or [])
        if message["type"] in CHOICE_TYPES:
            for index, option in enumerate(self.options, start=1):
                self.console.print(f"  [cyan]{index}.[/] {escape(option)}")
        self.console.print()

    def show_error(self, error: TilbotError) -> None:
        self.console.print(f"[red]Conversation failed:[/] {escape(str(error))}")

    def resolve_input(self, user_input: str) -> str:
        """Map an option number to the option text."""
        text = user_input.strip()
        if text.isdigit() and self.options:
            index = int(text) - 1
            if 0 <= index < len(self.options):
                return self.options[index]
        return text

    async def start(self) -> None:
        """Start the interactive session."""
        if self.session is None:
            await self.setup()
        assert self.session is not None

        self.console.print(BANNER_ART, style="bold blue")
        self.console.print(f"Session ID: [green]{self.session_id}[/]")
        self.console.print("Type 'exit' or 'quit' to end session.\n")

        await self.session.start()
        self._running = True
        while self._running:
            if await self.session.wait_idle() == EngineState.terminal:
                self.console.print("[yellow]Conversation ended.[/]")
                break

            try:
                user_input = Prompt.ask("[bold green]You[/]", console=self.console)
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]Goodbye![/]")
                break

            if self._is_exit_command(user_input):
                self.console.print("\n[yellow]Goodbye![/]")
                break

            if not user_input.strip():
                continue

            moved = await self.session.send(self.resolve_input(user_input))
            if not moved and self.config.verbose:
                self.console.print("[dim]No matching answer; try again.[/]")

    def _is_exit_command(self, user_input: str) -> bool:
        """Check if input is an exit command."""
        return user_input.strip().lower() in ("quit", "exit", "q", "/quit", "/exit")

    async def cleanup(self) -> None:
        """Clean up resources."""
        self._running = False
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "ChatRunner":
        """Async context manager entry."""
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.cleanup()


async def run_chat_session(config: ChatConfig) -> None:
    """Run an interactive chat session.

    Args:
        config: Chat configuration
    """
    async with ChatRunner(config) as runner:
        await runner.start()
