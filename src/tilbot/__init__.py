"""Tilbot - block-graph dialogue engine.

Tilbot runs conversational projects: graphs of Text, MC, List, AutoComplete,
Auto, Group and Trigger blocks. One engine drives each session, whether it is
hosted by the multi-session server or embedded in a single local client.

Quick start:
    from tilbot import BufferedMessageSink, ProjectLoader, SessionEngine

    project = ProjectLoader.load("examples/library/project.json")
    sink = BufferedMessageSink()
    engine = SessionEngine(project, sink)
    await engine.start()
    await engine.receive_message("Yes")
"""

from tilbot.__version__ import __version__

__author__ = "Tilbot Contributors"

# Core exports
from tilbot.config.loader import ConfigLoader, ProjectLoader
from tilbot.config.models import Project
from tilbot.config.settings import Settings, TilbotConfig
from tilbot.core.errors import (
    ConfigError,
    ExternalQueryError,
    GraphResolutionError,
    ProjectError,
    SessionClosedError,
    SessionError,
    TilbotError,
)
from tilbot.core.message_sink import BufferedMessageSink, CallbackMessageSink, MessageSink
from tilbot.core.types import BotMessage
from tilbot.engine.session import SessionEngine
from tilbot.runtime.local import LocalSession
from tilbot.runtime.registry import SessionRegistry

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Engine
    "SessionEngine",
    "SessionRegistry",
    "LocalSession",
    "BotMessage",
    "MessageSink",
    "BufferedMessageSink",
    "CallbackMessageSink",
    # Configuration
    "ConfigLoader",
    "ProjectLoader",
    "Project",
    "Settings",
    "TilbotConfig",
    # Errors
    "TilbotError",
    "ConfigError",
    "ProjectError",
    "GraphResolutionError",
    "ExternalQueryError",
    "SessionError",
    "SessionClosedError",
]
