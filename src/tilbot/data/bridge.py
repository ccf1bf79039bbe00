"""Bridge provider for client-local sessions.

The host application answers table queries over a request/response channel:
``invoke(channel, payload)`` returns an awaitable result. Two channels are
used:

- ``query-db-random`` with ``{"db": table}`` answers a row or None
- ``query-db`` with ``{"db": table, "col": column, "val": value}`` answers the
  list of matching rows
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from tilbot.core.errors import ExternalQueryError
from tilbot.core.types import Row

# Request/response channel exposed by the host application
BridgeInvoke = Callable[[str, dict[str, Any]], Awaitable[Any]]

RANDOM_ROW_CHANNEL = "query-db-random"
ROW_QUERY_CHANNEL = "query-db"


class BridgeDataProvider:
    """Forwards table lookups to the host application."""

    def __init__(self, invoke: BridgeInvoke) -> None:
        self._invoke = invoke

    async def random_row(self, table: str) -> Row | None:
        result = await self._invoke(RANDOM_ROW_CHANNEL, {"db": table})
        if result is None:
            return None
        if not isinstance(result, Mapping):
            raise ExternalQueryError(f"Bridge answered a non-row value for table '{table}'")
        return result

    async def row_matches(self, table: str, column: str, value: str) -> bool:
        result = await self._invoke(ROW_QUERY_CHANNEL, {"db": table, "col": column, "val": value})
        if isinstance(result, bool):
            return result
        return bool(result)
