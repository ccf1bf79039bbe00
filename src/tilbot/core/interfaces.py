"""Core interfaces (Protocols) for the engine's collaborators."""

from typing import Protocol, runtime_checkable

from tilbot.core.types import Row


@runtime_checkable
class IDataProvider(Protocol):
    """Interface for external table lookups.

    Both queries are asynchronous; implementations may be backed by local
    files, a remote query channel or plain memory.
    """

    async def random_row(self, table: str) -> Row | None:
        """Return a random row of ``table``, or None when it has no rows."""
        ...

    async def row_matches(self, table: str, column: str, value: str) -> bool:
        """Return whether ``table`` has a row whose ``column`` matches ``value``."""
        ...
