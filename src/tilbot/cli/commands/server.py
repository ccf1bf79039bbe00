"""Server command to start API."""

import os
from pathlib import Path

import typer
import uvicorn

from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.core.errors import TilbotError

app = typer.Typer(help="Start API server")


@app.callback(invoke_without_command=True)
def start_server(
    config: Path = typer.Option(..., "--config", "-c", help="Path to tilbot.yaml", exists=True),
    host: str = typer.Option("0.0.0.0", "--host", "-h"),
    port: int = typer.Option(2801, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Start the Tilbot API server."""

    # 1. Validate config and project
    try:
        tilbot_config = ConfigLoader.load(config)
        ProjectLoader.load(tilbot_config.project, tilbot_config.settings.limits.max_group_depth)
    except (TilbotError, FileNotFoundError) as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1)

    # 2. Set Env Vars for the server process (it loads config from env)
    os.environ["TILBOT_CONFIG_PATH"] = str(config.absolute())

    typer.echo(f"Starting Tilbot Server on http://{host}:{port}")
    typer.echo(f"   Config: {config}")
    typer.echo(f"   Project: {tilbot_config.project}")

    try:
        uvicorn.run(
            "tilbot.server.api:app",
            host=host,
            port=port,
            reload=reload,
            log_level=tilbot_config.settings.logging.level.lower(),
        )
    except Exception as e:
        typer.echo(f"Server failed: {e}", err=True)
        raise typer.Exit(1)
