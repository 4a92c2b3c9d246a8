"""Exceptions raised by the virtual table adapter."""

from __future__ import annotations

# Result codes understood by SQLite.
SQLITE_ERROR = 1
SQLITE_NOMEM = 7


class VirtualTableError(Exception):
    """Base class for adapter errors. Reported to the engine as a generic error."""

    code: int = SQLITE_ERROR


class ColumnRangeError(VirtualTableError, IndexError):
    """A column index outside the declared schema was requested."""

    def __init__(self, table: str, index: int, width: int) -> None:
        super().__init__(f"Column {index} out of range [0, {width}) for table '{table}'")
        self.table = table
        self.index = index
        self.width = width


class RowRangeError(VirtualTableError, IndexError):
    """The cursor points past the rows stored for a column."""

    def __init__(self, table: str, column: str, row: int, count: int) -> None:
        super().__init__(
            f"Row {row} out of range [0, {count}) for column '{column}' of table '{table}'"
        )
        self.table = table
        self.column = column
        self.row = row
        self.count = count


class PlanMismatchError(VirtualTableError):
    """The engine bound more values than the plan accepted predicates."""


class GenerateError(VirtualTableError):
    """A data source failed while producing rows."""


class AttachError(VirtualTableError):
    """A virtual table could not be registered with the engine."""


class StaleHandleError(VirtualTableError, KeyError):
    """A table handle was used after its table was released."""


class RegistryClosedError(VirtualTableError):
    """Registration was attempted after the registry was sealed."""


class TableSpecError(VirtualTableError, ValueError):
    """A table spec file is well-formed but describes an invalid table."""
