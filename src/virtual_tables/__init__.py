"""Virtual Tables - expose Python data sources as SQLite virtual tables."""

from virtual_tables.constraints import (
    Constraint,
    ConstraintList,
    ConstraintOperator,
    ConstraintSet,
    QueryContext,
)
from virtual_tables.cursor import Cursor
from virtual_tables.engine import (
    AttachReport,
    TableHandles,
    attach_table,
    attach_virtual_tables,
)
from virtual_tables.marshal import CoercionWarning, Diagnostics
from virtual_tables.registry import REGISTERED_TABLES, TableRegistry, register_table
from virtual_tables.table import RowBuffer, TableContent, TablePlugin, statement
from virtual_tables.types import Affinity, ColumnDefinition, ColumnSchema

__all__ = [
    # Descriptors
    "TablePlugin",
    "statement",
    "Affinity",
    "ColumnDefinition",
    "ColumnSchema",
    # Constraint model
    "Constraint",
    "ConstraintList",
    "ConstraintOperator",
    "ConstraintSet",
    "QueryContext",
    # Adapter state
    "TableContent",
    "RowBuffer",
    "Cursor",
    "Diagnostics",
    "CoercionWarning",
    # Registry and attachment
    "TableRegistry",
    "REGISTERED_TABLES",
    "register_table",
    "TableHandles",
    "AttachReport",
    "attach_table",
    "attach_virtual_tables",
]

__version__ = "0.1.0"
