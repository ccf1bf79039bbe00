"""Validate command for project documents and config files."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.config.models import Project
from tilbot.core.constants import BlockType
from tilbot.core.errors import ConfigError, ProjectError

CONFIG_SUFFIXES = (".yaml", ".yml")


def validate(
    path: Path = typer.Argument(..., help="Project JSON, tilbot.yaml or config directory"),
    max_group_depth: int | None = typer.Option(
        None, "--max-depth", help="Override the configured group nesting limit"
    ),
) -> None:
    """Check a project for structural problems."""
    console = Console()

    try:
        if path.is_dir() or path.suffix in CONFIG_SUFFIXES:
            config = ConfigLoader.load(path)
            depth = max_group_depth or config.settings.limits.max_group_depth
            project = ProjectLoader.load(config.project, max_group_depth=depth)
        else:
            project = ProjectLoader.load(path, max_group_depth=max_group_depth or 32)
    except ProjectError as e:
        console.print("[red]Project is invalid[/]")
        for problem in e.problems or [str(e)]:
            console.print(f"  - {escape(problem)}")
        raise typer.Exit(1)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Invalid config:[/] {escape(str(e))}")
        raise typer.Exit(1)

    blocks, groups, triggers = _count(project)
    console.print(
        f"[green]Project is valid[/]: {blocks} blocks, {groups} groups, {triggers} triggers"
    )


def _count(project: Project) -> tuple[int, int, int]:
    blocks = groups = triggers = 0
    pending = [project.blocks]
    while pending:
        for block in pending.pop().values():
            blocks += 1
            if block.type == BlockType.TRIGGER:
                triggers += 1
            elif block.type == BlockType.GROUP:
                groups += 1
                pending.append(block.blocks)
    return blocks, groups, triggers
