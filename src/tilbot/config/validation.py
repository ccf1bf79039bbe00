"""Structural checks run before a project is allowed to start a session."""

from tilbot.config.models import Project
from tilbot.core.errors import ProjectError


def find_problems(project: Project, max_group_depth: int = 32) -> list[str]:
    """Collect structural problems of a project document.

    Checks the root starting block, every group's starting block and the
    group nesting depth. Connector targets are not checked here: a dangling
    target is a runtime resolution failure of the session that follows it.
    """
    problems: list[str] = []

    if project.starting_block_id is None:
        problems.append("missing starting_block_id")
    elif project.starting_block_id not in project.blocks:
        problems.append(f"starting block '{project.starting_block_id}' does not exist")

    for parent_path, group in project.iter_groups():
        where = "/".join([*parent_path, group.id])
        depth = len(parent_path) + 1
        if depth > max_group_depth:
            problems.append(f"group '{where}' nested {depth} levels deep (limit {max_group_depth})")
            continue
        if group.starting_block_id is None:
            problems.append(f"group '{where}' has no starting_block_id")
        elif group.starting_block_id not in group.blocks:
            problems.append(
                f"group '{where}' starting block '{group.starting_block_id}' does not exist"
            )

    return problems


def validate_project(project: Project, max_group_depth: int = 32) -> Project:
    """Raise ProjectError listing every structural problem, else return the project."""
    problems = find_problems(project, max_group_depth)
    if problems:
        raise ProjectError("Invalid project", problems)
    return project
