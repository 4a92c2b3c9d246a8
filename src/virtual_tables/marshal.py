"""Conversion of stored cell text to SQLite values by column affinity."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

import structlog

from virtual_tables.types import Affinity

logger = structlog.get_logger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DOUBLE_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

# Value returned in place of malformed numeric text
DEFAULT_SENTINEL = -1


@dataclass(frozen=True)
class CoercionWarning:
    """A cell whose text could not be converted to its column's affinity."""

    column: str
    value: str
    affinity: Affinity

    def __str__(self) -> str:
        return f"Error casting {self.column} ({self.value!r}) to {self.affinity.value}"


@dataclass
class Diagnostics:
    """Collects recoverable problems found while reading cells."""

    table: str = ""
    warnings: list[CoercionWarning] = field(default_factory=list)

    def record(self, warning: CoercionWarning) -> None:
        self.warnings.append(warning)
        logger.warning(
            "coercion_failed",
            table=self.table,
            column=warning.column,
            value=warning.value,
            affinity=warning.affinity.value,
        )

    def clear(self) -> None:
        self.warnings.clear()

    def __len__(self) -> int:
        return len(self.warnings)


def parse_integer(value: str, affinity: Affinity) -> int | None:
    """Parse ``value`` as an integer within the affinity's range, else None."""
    if not _INTEGER_RE.fullmatch(value):
        return None
    try:
        number = int(value)
    except ValueError:
        # digit strings past the interpreter's conversion limit
        return None
    low, high = affinity.bounds  # type: ignore[misc]
    if number < low or number > high:
        return None
    return number


def parse_double(value: str) -> float | None:
    """Parse a plain decimal or exponent literal to a finite float, else None."""
    if not _DOUBLE_RE.fullmatch(value):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def to_sql_value(
    value: str,
    affinity: Affinity,
    *,
    column: str,
    diagnostics: Diagnostics,
    sentinel: int = DEFAULT_SENTINEL,
) -> str | int | float:
    """Convert stored text to the value handed back to the engine.

    Malformed numeric text never fails the fetch: the sentinel is returned
    and a CoercionWarning is recorded on ``diagnostics``.
    """
    if affinity is Affinity.TEXT:
        return value

    if affinity is Affinity.DOUBLE:
        real = parse_double(value)
        if real is None:
            diagnostics.record(CoercionWarning(column, value, affinity))
            return float(sentinel)
        return real

    number = parse_integer(value, affinity)
    if number is None:
        diagnostics.record(CoercionWarning(column, value, affinity))
        return sentinel
    return number
