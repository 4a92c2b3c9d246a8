"""Table descriptors and the per-table state owned by the adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Mapping

from virtual_tables.constraints import ConstraintSet, QueryContext
from virtual_tables.marshal import Diagnostics
from virtual_tables.types import ColumnSchema


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def statement(name: str, columns: ColumnSchema) -> str:
    """Build the schema declaration for a table.

    Args:
        name: Table name.
        columns: Column schema, in declaration order.

    Returns:
        A CREATE TABLE statement listing every column with its SQL type.
    """
    cols = ", ".join(
        f"{quote_identifier(c.name)} {c.affinity.sql_type}" for c in columns
    )
    return f"CREATE TABLE {quote_identifier(name)}({cols})"


class TablePlugin:
    """Base class for data sources exposed as virtual tables.

    Subclasses set ``name`` and ``columns`` and implement ``generate``, which
    is called once per filter pass and returns rows as mappings from column
    name to cell text. Row order becomes result order.
    """

    name: ClassVar[str] = ""
    columns: ClassVar[ColumnSchema] = ColumnSchema([])

    def generate(self, context: QueryContext) -> Iterable[Mapping[str, Any]]:
        raise NotImplementedError

    def statement(self) -> str:
        return statement(self.name, self.columns)


@dataclass(frozen=True)
class RowBuffer:
    """Rows materialized by one filter pass, stored by column."""

    columns: dict[str, tuple[str, ...]]
    row_count: int

    def __post_init__(self) -> None:
        for column, values in self.columns.items():
            if len(values) != self.row_count:
                raise ValueError(
                    f"Column '{column}' holds {len(values)} values, expected {self.row_count}"
                )

    @classmethod
    def empty(cls, schema: ColumnSchema) -> RowBuffer:
        return cls({name: () for name in schema.names}, 0)

    def value(self, column: str, row: int) -> str:
        return self.columns[column][row]

    def row(self, index: int) -> dict[str, str]:
        """Return one row as a column -> text mapping."""
        return {name: values[index] for name, values in self.columns.items()}


@dataclass
class TableContent:
    """Adapter-owned state of one attached virtual table."""

    plugin: TablePlugin
    constraints: ConstraintSet = field(default_factory=ConstraintSet)
    rows: RowBuffer | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def __post_init__(self) -> None:
        if self.rows is None:
            self.rows = RowBuffer.empty(self.schema)
        if not self.diagnostics.table:
            self.diagnostics.table = self.name

    @property
    def name(self) -> str:
        return self.plugin.name

    @property
    def schema(self) -> ColumnSchema:
        return self.plugin.columns

    @property
    def n(self) -> int:
        """Row count of the latest filter pass."""
        return self.rows.row_count  # type: ignore[union-attr]
