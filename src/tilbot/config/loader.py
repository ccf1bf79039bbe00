"""Loaders for YAML configuration files and JSON project documents."""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from tilbot.config.models import Project
from tilbot.config.settings import TilbotConfig
from tilbot.config.validation import validate_project
from tilbot.core.errors import ConfigError, ProjectError


class ConfigLoader:
    """Load TilbotConfig from YAML files."""

    @staticmethod
    def load(path: Path | str) -> TilbotConfig:
        """Load configuration from YAML file.

        Relative ``project`` and ``settings.data.path`` entries are resolved
        against the directory of the configuration file.

        Args:
            path: Path to config directory or tilbot.yaml file

        Returns:
            Parsed TilbotConfig instance
        """
        config_path = Path(path)

        if config_path.is_dir():
            yaml_file = config_path / "tilbot.yaml"
            if not yaml_file.exists():
                yaml_file = config_path / "config.yaml"
            if not yaml_file.exists():
                raise FileNotFoundError(f"No config file found in {config_path}")
        else:
            yaml_file = config_path
            if not yaml_file.exists():
                raise FileNotFoundError(f"Config file not found: {yaml_file}")

        try:
            with open(yaml_file, encoding="utf-8") as f:
                data: dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e

        try:
            config = TilbotConfig.model_validate(data)
        except (PydanticValidationError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {yaml_file}: {e}") from e

        base_dir = yaml_file.parent
        config.project = str(_resolve(base_dir, config.project))
        config.settings.data.path = str(_resolve(base_dir, config.settings.data.path))
        return config


class ProjectLoader:
    """Load and validate project documents."""

    @staticmethod
    def load(path: Path | str, max_group_depth: int = 32) -> Project:
        """Read a JSON project file.

        Raises:
            ProjectError: If the file is missing, unreadable or structurally invalid
        """
        project_path = Path(path)
        if not project_path.exists():
            raise ProjectError(f"Project file not found: {project_path}")

        try:
            text = project_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ProjectError(f"Cannot read project file {project_path}: {e}") from e

        return ProjectLoader.parse(text, max_group_depth=max_group_depth)

    @staticmethod
    def parse(
        source: str | bytes | Mapping[str, Any] | Project,
        max_group_depth: int = 32,
    ) -> Project:
        """Build a validated Project from JSON text, a mapping or a Project."""
        if isinstance(source, Project):
            return validate_project(source, max_group_depth)

        if isinstance(source, (str, bytes)):
            try:
                data = json.loads(source)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ProjectError(f"Project is not valid JSON: {e}") from e
        else:
            data = dict(source)

        if not isinstance(data, dict):
            raise ProjectError("Project document must be a JSON object")

        try:
            project = Project.model_validate(data)
        except PydanticValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ProjectError("Invalid project", problems) from e

        return validate_project(project, max_group_depth)


def _resolve(base_dir: Path, value: str) -> Path:
    candidate = Path(value)
    if candidate.is_absolute():
        return candidate
    return (base_dir / candidate).resolve()
