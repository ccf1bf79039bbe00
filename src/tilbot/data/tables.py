"""CSV file-backed tables."""

import asyncio
import csv
import logging
import random
from collections.abc import Mapping, Sequence
from pathlib import Path

from cachetools import TTLCache

from tilbot.config.models import Project
from tilbot.core.errors import ExternalQueryError
from tilbot.core.types import Row
from tilbot.data.provider import TableDataProvider

logger = logging.getLogger(__name__)


class CsvDataProvider(TableDataProvider):
    """Serves tables from CSV files, one file per table.

    A table name resolves to an explicitly declared file first, then to
    ``<directory>/<table>.csv``. Loaded tables stay cached for ``cache_ttl``
    seconds so edits to the files are picked up without a restart.
    """

    def __init__(
        self,
        files: Mapping[str, Path | str] | None = None,
        directory: Path | str | None = None,
        cache_ttl: int = 60,
        cache_size: int = 64,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(rng)
        self.files = {name: Path(path) for name, path in (files or {}).items()}
        self.directory = Path(directory) if directory is not None else None
        self._cache: TTLCache[str, list[Row]] = TTLCache(
            maxsize=cache_size,
            ttl=cache_ttl,
        )

    @classmethod
    def from_project(
        cls,
        project: Project,
        directory: Path | str,
        cache_ttl: int = 60,
        rng: random.Random | None = None,
    ) -> "CsvDataProvider":
        """Build a provider from the CSV tables a project declares."""
        directory = Path(directory)
        files = {
            name: directory / table.csvfile
            for name, table in project.variables.items()
            if table.type == "csv" and table.csvfile
        }
        return cls(files=files, directory=directory, cache_ttl=cache_ttl, rng=rng)

    def path_for(self, table: str) -> Path:
        """File backing ``table``.

        Raises:
            ExternalQueryError: If no file backs the table
        """
        if table in self.files:
            path = self.files[table]
        elif self.directory is not None:
            path = self.directory / f"{table}.csv"
        else:
            raise ExternalQueryError(f"Unknown table: {table}")

        if not path.is_file():
            raise ExternalQueryError(f"Table file not found for '{table}': {path}")
        return path

    async def rows(self, table: str) -> Sequence[Row]:
        cached = self._cache.get(table)
        if cached is not None:
            return cached

        path = self.path_for(table)
        try:
            rows = await asyncio.to_thread(_read_csv, path)
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise ExternalQueryError(f"Cannot read table '{table}' from {path}: {e}") from e

        logger.debug(f"Loaded table '{table}' ({len(rows)} rows) from {path}")
        self._cache[table] = rows
        return rows


def _read_csv(path: Path) -> list[Row]:
    with open(path, encoding="utf-8-sig", newline="") as f:
        return [dict(row) for row in csv.DictReader(f)]
