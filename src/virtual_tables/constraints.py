"""Predicate model shared by the planner, the materializer and data sources."""

from __future__ import annotations

import json
import operator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Sequence

from virtual_tables.types import Affinity

if TYPE_CHECKING:
    from virtual_tables.types import ColumnSchema


class ConstraintOperator(IntEnum):
    """Comparison kinds offered by SQLite (SQLITE_INDEX_CONSTRAINT_* codes)."""

    EQ = 2
    GT = 4
    LE = 8
    LT = 16
    GE = 32
    MATCH = 64
    LIKE = 65
    GLOB = 66
    REGEXP = 67
    NE = 68
    ISNOT = 69
    ISNOTNULL = 70
    ISNULL = 71
    IS = 72
    LIMIT = 73
    OFFSET = 74
    FUNCTION = 150

    @property
    def symbol(self) -> str:
        """Return the SQL spelling of the operator."""
        return _SYMBOLS[self]

    @property
    def is_comparison(self) -> bool:
        """Return whether the operator compares a column against a value."""
        return self in _COMPARATORS


_SYMBOLS = {
    ConstraintOperator.EQ: "=",
    ConstraintOperator.GT: ">",
    ConstraintOperator.LE: "<=",
    ConstraintOperator.LT: "<",
    ConstraintOperator.GE: ">=",
    ConstraintOperator.MATCH: "MATCH",
    ConstraintOperator.LIKE: "LIKE",
    ConstraintOperator.GLOB: "GLOB",
    ConstraintOperator.REGEXP: "REGEXP",
    ConstraintOperator.NE: "!=",
    ConstraintOperator.ISNOT: "IS NOT",
    ConstraintOperator.ISNOTNULL: "IS NOT NULL",
    ConstraintOperator.ISNULL: "IS NULL",
    ConstraintOperator.IS: "IS",
    ConstraintOperator.LIMIT: "LIMIT",
    ConstraintOperator.OFFSET: "OFFSET",
    ConstraintOperator.FUNCTION: "FUNCTION",
}

_COMPARATORS: dict[ConstraintOperator, Callable[[Any, Any], bool]] = {
    ConstraintOperator.EQ: operator.eq,
    ConstraintOperator.IS: operator.eq,
    ConstraintOperator.NE: operator.ne,
    ConstraintOperator.ISNOT: operator.ne,
    ConstraintOperator.GT: operator.gt,
    ConstraintOperator.GE: operator.ge,
    ConstraintOperator.LT: operator.lt,
    ConstraintOperator.LE: operator.le,
}


def as_operator(op: int) -> ConstraintOperator | int:
    """Convert an engine operator code, keeping unknown codes as plain ints."""
    try:
        return ConstraintOperator(op)
    except ValueError:
        return op


@dataclass
class Constraint:
    """A single predicate: operator and literal expression text."""

    op: ConstraintOperator | int
    expr: str = ""


@dataclass
class ConstraintList:
    """All constraints on one column, tagged with the column's affinity."""

    affinity: Affinity
    constraints: list[Constraint] = field(default_factory=list)

    def add(self, constraint: Constraint) -> None:
        self.constraints.append(constraint)

    def exists(self, op: ConstraintOperator | int | None = None) -> bool:
        """Check if any constraint (optionally with the given operator) exists."""
        if op is None:
            return bool(self.constraints)
        return any(c.op == op for c in self.constraints)

    def get_all(self, op: ConstraintOperator | int) -> list[str]:
        """Return the expressions of every constraint using ``op``."""
        return [c.expr for c in self.constraints if c.op == op]

    def matches(self, value: str) -> bool:
        """Check a candidate value against every comparison constraint.

        Numeric affinities compare numerically when both sides parse, text
        otherwise. Operators that are not plain comparisons are ignored; the
        engine re-checks them on returned rows.
        """
        for constraint in self.constraints:
            if not isinstance(constraint.op, ConstraintOperator):
                continue
            compare = _COMPARATORS.get(constraint.op)
            if compare is None:
                continue
            left, right = self._coerce(value), self._coerce(constraint.expr)
            if type(left) is not type(right):
                left, right = value, constraint.expr
            if not compare(left, right):
                return False
        return True

    def _coerce(self, text: str) -> str | float:
        if not self.affinity.is_numeric:
            return text
        try:
            return float(text)
        except ValueError:
            return text

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self.constraints)

    def __len__(self) -> int:
        return len(self.constraints)


@dataclass
class QueryContext:
    """Per-query request handed to a data source's ``generate``."""

    constraints: dict[str, ConstraintList] = field(default_factory=dict)

    @classmethod
    def for_columns(cls, schema: ColumnSchema) -> QueryContext:
        """Create a context with an empty ConstraintList for every column."""
        return cls({c.name: ConstraintList(affinity=c.affinity) for c in schema})

    def __getitem__(self, column: str) -> ConstraintList:
        return self.constraints[column]

    def __contains__(self, column: object) -> bool:
        return column in self.constraints


class ConstraintSet:
    """Predicates accepted during planning, in the order the engine offered them.

    Position ``i`` lines up with the ``i``-th value the engine binds at filter
    time.
    """

    def __init__(self, entries: Iterable[tuple[str, Constraint]] = ()) -> None:
        self._entries: list[tuple[str, Constraint]] = list(entries)

    def append(self, column: str, constraint: Constraint) -> None:
        self._entries.append((column, constraint))

    def clear(self) -> None:
        self._entries.clear()

    def bind(self, values: Sequence[str]) -> list[tuple[str, Constraint]]:
        """Attach bound expressions positionally and return the completed pairs."""
        bound = []
        for (column, constraint), expr in zip(self._entries, values):
            bound.append((column, Constraint(op=constraint.op, expr=expr)))
        self._entries[: len(bound)] = bound
        return bound

    def encode(self) -> str:
        """Encode the column/operator pairs as index-string text."""
        return json.dumps([[column, int(c.op)] for column, c in self._entries])

    @classmethod
    def decode(cls, text: str | None) -> ConstraintSet:
        """Rebuild a set (without expressions) from ``encode`` output."""
        if not text:
            return cls()
        return cls((column, Constraint(as_operator(op))) for column, op in json.loads(text))

    def __getitem__(self, index: int) -> tuple[str, Constraint]:
        return self._entries[index]

    def __iter__(self) -> Iterator[tuple[str, Constraint]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConstraintSet):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ConstraintSet({self._entries!r})"
