"""Chat command for interactive sessions."""

import asyncio
from pathlib import Path

import typer

from tilbot.core.errors import TilbotError

app = typer.Typer(help="Start interactive chat with a Tilbot project")


@app.callback(invoke_without_command=True)
def run_chat(
    config: Path = typer.Option(
        "tilbot.yaml", "--config", "-c", help="Path to tilbot.yaml or config directory"
    ),
    session_id: str | None = typer.Option(None, "--session", "-s", help="Session ID"),
    no_delay: bool = typer.Option(False, "--no-delay", help="Skip block delays"),
    debug: bool = typer.Option(False, "--debug", help="Debug mode"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose mode"),
) -> None:
    """Start interactive chat session."""
    from tilbot.cli.chat_runner import ChatConfig, run_chat_session

    chat_config = ChatConfig(
        config_path=config,
        session_id=session_id,
        no_delay=no_delay,
        debug=debug,
        verbose=verbose,
    )

    try:
        asyncio.run(run_chat_session(chat_config))
    except KeyboardInterrupt:
        pass
    except (TilbotError, FileNotFoundError) as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(1)
