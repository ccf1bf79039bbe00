"""Tests for structural project validation."""

import pytest

from tilbot.config.models import Project
from tilbot.config.validation import find_problems, validate_project
from tilbot.core.errors import ProjectError
from tests.factories import group_block, make_document, nested, text_block


def test_valid_project_has_no_problems():
    project = Project.model_validate(make_document({"1": text_block()}))

    assert find_problems(project) == []
    assert validate_project(project) is project


def test_missing_starting_block_id():
    project = Project.model_validate({"blocks": {"1": text_block()}})

    assert find_problems(project) == ["missing starting_block_id"]


def test_starting_block_must_exist():
    project = Project.model_validate(make_document({"1": text_block()}, start="9"))

    assert find_problems(project) == ["starting block '9' does not exist"]


def test_group_starting_block_must_exist():
    project = Project.model_validate(
        make_document({"1": group_block("9", {"1": text_block()})})
    )

    assert find_problems(project) == ["group '1' starting block '9' does not exist"]


def test_group_without_starting_block():
    project = Project.model_validate(make_document({"1": group_block(None, {})}))

    assert find_problems(project) == ["group '1' has no starting_block_id"]


def test_nesting_depth_limit():
    # Arrange
    project = Project.model_validate(make_document(nested(3)))

    # Act
    problems = find_problems(project, max_group_depth=2)

    # Assert
    assert problems == ["group '1/1/1' nested 3 levels deep (limit 2)"]
    assert find_problems(project, max_group_depth=3) == []


def test_validate_project_reports_every_problem():
    project = Project.model_validate(
        {"blocks": {"1": group_block("9", {}), "2": group_block(None, {})}}
    )

    with pytest.raises(ProjectError) as exc_info:
        validate_project(project)

    assert exc_info.value.problems == [
        "missing starting_block_id",
        "group '1' starting block '9' does not exist",
        "group '2' has no starting_block_id",
    ]
