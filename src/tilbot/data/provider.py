"""Data providers answering the engine's table lookups.

The engine only relies on :class:`tilbot.core.interfaces.IDataProvider`.
This module ships the in-process implementations plus the guard that turns
provider failures into negative answers.
"""

import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from tilbot.core.errors import ExternalQueryError
from tilbot.core.interfaces import IDataProvider
from tilbot.core.types import Row

logger = logging.getLogger(__name__)


def cell_matches(cell: Any, value: str) -> bool:
    """Compare a table cell with a candidate value (trimmed, case-insensitive)."""
    if cell is None:
        return False
    return str(cell).strip().casefold() == value.strip().casefold()


class NullDataProvider:
    """Provider with no tables: every lookup is negative."""

    async def random_row(self, table: str) -> Row | None:
        return None

    async def row_matches(self, table: str, column: str, value: str) -> bool:
        return False


class TableDataProvider(ABC):
    """Provider backed by tables of rows held in memory."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @abstractmethod
    async def rows(self, table: str) -> Sequence[Row]:
        """Return every row of ``table``.

        Raises:
            ExternalQueryError: If the table does not exist
        """
        ...

    async def random_row(self, table: str) -> Row | None:
        rows = await self.rows(table)
        if not rows:
            return None
        return dict(self._rng.choice(rows))

    async def row_matches(self, table: str, column: str, value: str) -> bool:
        rows = await self.rows(table)
        return any(cell_matches(row.get(column), value) for row in rows)


class InMemoryDataProvider(TableDataProvider):
    """Tables given up front as lists of mappings."""

    def __init__(
        self,
        tables: Mapping[str, Sequence[Row]],
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(rng)
        self._tables = {name: list(rows) for name, rows in tables.items()}

    async def rows(self, table: str) -> Sequence[Row]:
        if table not in self._tables:
            raise ExternalQueryError(f"Unknown table: {table}")
        return self._tables[table]


class GuardedDataProvider:
    """Wraps a provider so that failures never reach the matcher.

    ``random_row`` answers None on failure. ``row_matches`` answers None on
    failure so callers can tell "no row" from "could not ask".
    """

    def __init__(self, inner: IDataProvider) -> None:
        self.inner = inner

    async def random_row(self, table: str) -> Row | None:
        try:
            row = await self.inner.random_row(table)
        except Exception as e:
            logger.warning(f"External query random_row({table!r}) failed: {e}")
            return None
        if row is not None and not isinstance(row, Mapping):
            logger.warning(f"External query random_row({table!r}) returned a non-row value")
            return None
        return row

    async def row_matches(self, table: str, column: str, value: str) -> bool | None:
        try:
            return bool(await self.inner.row_matches(table, column, value))
        except Exception as e:
            logger.warning(
                f"External query row_matches({table!r}, {column!r}, {value!r}) failed: {e}"
            )
            return None
