"""Translation of the engine's predicate offers into a ConstraintSet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from virtual_tables.constraints import (
    Constraint,
    ConstraintOperator,
    ConstraintSet,
    as_operator,
)
from virtual_tables.types import ColumnSchema

# Cost reported for a full scan; each accepted predicate divides it.
FULL_SCAN_COST = 1_000_000.0

# Operators that restrict the result rather than compare a column
_NON_COLUMN_OPERATORS = {ConstraintOperator.LIMIT, ConstraintOperator.OFFSET}


@dataclass(frozen=True)
class CandidatePredicate:
    """One predicate the engine offers during planning."""

    column: int  # position in the schema, -1 for rowid
    op: int
    usable: bool = True


@dataclass
class IndexPlan:
    """Planner output for one set of offers."""

    constraints: ConstraintSet = field(default_factory=ConstraintSet)
    argv_indexes: list[int] = field(default_factory=list)

    @property
    def idx_str(self) -> str:
        return self.constraints.encode()

    @property
    def estimated_cost(self) -> float:
        return FULL_SCAN_COST / (1 + len(self.constraints))


def accepts(schema: ColumnSchema, candidate: CandidatePredicate) -> bool:
    """Check whether a predicate can be pushed down to the data source."""
    if not candidate.usable:
        return False
    if candidate.column < 0 or candidate.column >= len(schema):
        return False
    return as_operator(candidate.op) not in _NON_COLUMN_OPERATORS


def plan_constraints(
    schema: ColumnSchema, candidates: Iterable[CandidatePredicate]
) -> IndexPlan:
    """Accept every usable predicate and number its argument.

    Accepted predicates get argv indexes 1, 2, 3, ... in offer order; the
    engine binds their values in that order at filter time. Rejected
    predicates get 0 and are re-checked by the engine.
    """
    plan = IndexPlan()
    argv_index = 0
    for candidate in candidates:
        if not accepts(schema, candidate):
            plan.argv_indexes.append(0)
            continue
        name = schema[candidate.column].name
        plan.constraints.append(name, Constraint(as_operator(candidate.op)))
        argv_index += 1
        plan.argv_indexes.append(argv_index)
    return plan
