"""Session hosting: the multi-session registry and the local single session."""

from tilbot.runtime.local import LocalSession
from tilbot.runtime.registry import SessionRegistry

__all__ = ["LocalSession", "SessionRegistry"]
