"""Block-graph interpreter."""

from tilbot.engine.matcher import Match, Matcher
from tilbot.engine.navigator import Navigator, Scope, TriggerRef
from tilbot.engine.session import SessionEngine
from tilbot.engine.variables import VariableStore

__all__ = [
    "Match",
    "Matcher",
    "Navigator",
    "Scope",
    "SessionEngine",
    "TriggerRef",
    "VariableStore",
]
