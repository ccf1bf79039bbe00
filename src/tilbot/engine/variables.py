"""Per-session variable store."""

from collections.abc import Iterator, Mapping
from typing import Any


class VariableStore:
    """Mapping of variable name to value for one session.

    Values are scalars or rows (mappings of column to value) fetched from an
    external table. A store is never shared between sessions.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def get(self, name: str) -> Any:
        return self._values.get(name)

    def get_row(self, name: str) -> Mapping[str, Any] | None:
        """Return the variable if it holds a row, else None."""
        value = self._values.get(name)
        return value if isinstance(value, Mapping) else None

    def as_dict(self) -> dict[str, Any]:
        return {
            name: dict(value) if isinstance(value, Mapping) else value
            for name, value in self._values.items()
        }

    def clear(self) -> None:
        self._values.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)
