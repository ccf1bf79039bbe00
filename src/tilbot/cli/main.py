"""Main CLI entry point for Tilbot"""

import typer

from tilbot.__version__ import __version__
from tilbot.cli.commands import chat as chat_module
from tilbot.cli.commands import server as server_module
from tilbot.cli.commands import validate as validate_module

app = typer.Typer(
    name="tilbot",
    help="Tilbot - block-graph dialogue engine",
    add_completion=False,
)

# Register subcommands
app.add_typer(server_module.app, name="server", help="Start the Tilbot API server")
app.add_typer(chat_module.app, name="chat", help="Chat with a project in the terminal")
app.command(name="validate", help="Check a project or config file")(validate_module.validate)


def version_callback(value: bool) -> None:
    """Print version and exit"""
    if value:
        typer.echo(f"Tilbot version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Tilbot - block-graph dialogue engine"""
    pass


def cli() -> None:
    """Entry point for CLI"""
    app()


if __name__ == "__main__":
    cli()
