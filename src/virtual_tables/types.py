"""Column type affinities and table schemas."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


class Affinity(Enum):
    """Declared storage class of a virtual table column."""

    TEXT = "TEXT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    DOUBLE = "DOUBLE"

    @property
    def sql_type(self) -> str:
        """Return the type name used in the schema declaration."""
        return self.value

    @property
    def is_numeric(self) -> bool:
        return self is not Affinity.TEXT

    @property
    def bounds(self) -> tuple[int, int] | None:
        """Return the inclusive integer range for integer affinities."""
        ranges = {
            Affinity.INTEGER: (-(2**31), 2**31 - 1),
            Affinity.BIGINT: (-(2**63), 2**63 - 1),
        }
        return ranges.get(self)


# Mapping from declared type names to Affinity values
AFFINITY_NAMES: dict[str, Affinity] = {a.value: a for a in Affinity}


@dataclass(frozen=True)
class ColumnDefinition:
    """A single named, typed column."""

    name: str
    affinity: Affinity
    description: str = ""


class ColumnSchema:
    """Ordered column list of a table.

    Order defines both the declared SQL schema and the positional index the
    engine uses to reference columns.
    """

    def __init__(self, columns: Iterable[ColumnDefinition | tuple[str, Affinity]]) -> None:
        defs: list[ColumnDefinition] = []
        seen: set[str] = set()
        for column in columns:
            if not isinstance(column, ColumnDefinition):
                column = ColumnDefinition(*column)
            if not column.name:
                raise ValueError("Column name must not be empty")
            if column.name in seen:
                raise ValueError(f"Column '{column.name}' is already defined")
            seen.add(column.name)
            defs.append(column)
        self._columns: tuple[ColumnDefinition, ...] = tuple(defs)
        self._positions = {c.name: i for i, c in enumerate(self._columns)}

    @property
    def names(self) -> list[str]:
        return [c.name for c in self._columns]

    @property
    def affinities(self) -> list[Affinity]:
        return [c.affinity for c in self._columns]

    def index_of(self, name: str) -> int:
        """Return the position of a column, raising KeyError if undeclared."""
        try:
            return self._positions[name]
        except KeyError:
            raise KeyError(f"Column '{name}' not found") from None

    def __getitem__(self, index: int) -> ColumnDefinition:
        return self._columns[index]

    def __iter__(self) -> Iterator[ColumnDefinition]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, name: object) -> bool:
        return name in self._positions

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnSchema):
            return NotImplemented
        return self._columns == other._columns

    def __repr__(self) -> str:
        cols = ", ".join(f"{c.name} {c.affinity.value}" for c in self._columns)
        return f"ColumnSchema({cols})"
