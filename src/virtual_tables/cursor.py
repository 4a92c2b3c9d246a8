"""Per-scan iteration state over a table's materialized rows."""

from __future__ import annotations

from typing import Any, Sequence

from virtual_tables.constraints import ConstraintSet
from virtual_tables.errors import ColumnRangeError, RowRangeError
from virtual_tables.marshal import DEFAULT_SENTINEL, to_sql_value
from virtual_tables.materializer import filter_pass
from virtual_tables.table import RowBuffer, TableContent


class Cursor:
    """One open scan of a table.

    Each cursor keeps the RowBuffer produced by its own filter pass, so a
    second scan of the same table (a self-join, or an interleaved query)
    re-materializing rows never changes what this cursor reads.
    """

    def __init__(
        self,
        content: TableContent,
        *,
        sentinel: int = DEFAULT_SENTINEL,
        absorb_errors: bool = False,
    ) -> None:
        self.content = content
        self.row = 0
        self.rows: RowBuffer = RowBuffer.empty(content.schema)
        self._sentinel = sentinel
        self._absorb_errors = absorb_errors

    def filter(self, constraints: ConstraintSet, values: Sequence[Any]) -> None:
        """Materialize a fresh result and rewind to its first row."""
        self.row = 0
        self.rows = filter_pass(
            self.content, constraints, values, absorb_errors=self._absorb_errors
        )

    def next(self) -> None:
        self.row += 1

    def eof(self) -> bool:
        return self.row >= self.rows.row_count

    def rowid(self) -> int:
        """Return the current row index; stable only within one filter pass."""
        return self.row

    def column(self, index: int) -> Any:
        """Return the current row's value for column ``index``.

        Raises:
            ColumnRangeError: If ``index`` is outside the schema.
            RowRangeError: If the cursor is past the stored rows.
        """
        if index == -1:
            return self.rowid()

        schema = self.content.schema
        if index < 0 or index >= len(schema):
            raise ColumnRangeError(self.content.name, index, len(schema))

        column = schema[index]
        values = self.rows.columns[column.name]
        if self.row >= len(values):
            raise RowRangeError(self.content.name, column.name, self.row, len(values))

        return to_sql_value(
            values[self.row],
            column.affinity,
            column=column.name,
            diagnostics=self.content.diagnostics,
            sentinel=self._sentinel,
        )

    def close(self) -> None:
        self.rows = RowBuffer.empty(self.content.schema)
        self.row = 0
