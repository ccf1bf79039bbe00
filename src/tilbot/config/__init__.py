"""Configuration module for Tilbot."""

from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.config.models import Block, Connector, EventConfig, GroupBlock, Project
from tilbot.config.settings import Settings, TilbotConfig

__all__ = [
    "Block",
    "ConfigLoader",
    "Connector",
    "EventConfig",
    "GroupBlock",
    "Project",
    "ProjectLoader",
    "Settings",
    "TilbotConfig",
]
