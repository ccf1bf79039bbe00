"""Observability module for Tilbot."""

from tilbot.observability.logging import ContextLogger, setup_logging

__all__ = ["ContextLogger", "setup_logging"]
