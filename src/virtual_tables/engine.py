"""SQLite binding: the apsw module, table and cursor callback objects.

This is the only layer that talks to the engine. It turns handles back into
TableContent, converts the engine's planning structures into planner input
and forwards every other callback to the engine-independent core.
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from typing import Any

import apsw
import structlog

from virtual_tables.config import Settings, get_settings
from virtual_tables.constraints import ConstraintSet
from virtual_tables.cursor import Cursor
from virtual_tables.errors import AttachError, StaleHandleError, VirtualTableError
from virtual_tables.planner import CandidatePredicate, plan_constraints
from virtual_tables.registry import REGISTERED_TABLES, TableFactory, TableRegistry
from virtual_tables.table import TableContent, TablePlugin

logger = structlog.get_logger(__name__)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class TableHandles:
    """Owning arena of TableContent, addressed by integer handles."""

    def __init__(self) -> None:
        self._contents: dict[int, TableContent] = {}
        self._ids = itertools.count(1)

    def add(self, content: TableContent) -> int:
        handle = next(self._ids)
        self._contents[handle] = content
        return handle

    def get(self, handle: int) -> TableContent:
        """Resolve a handle, raising StaleHandleError once it is released."""
        content = self._contents.get(handle)
        if content is None:
            raise StaleHandleError(f"Table handle {handle} is not live")
        return content

    def release(self, handle: int) -> None:
        self._contents.pop(handle, None)

    def __len__(self) -> int:
        return len(self._contents)

    def __contains__(self, handle: object) -> bool:
        return handle in self._contents


# Every table attached in this process lives here until destroyed
TABLE_HANDLES = TableHandles()


class VirtualTableModule:
    """Module callbacks shared by every table created from one factory."""

    def __init__(
        self,
        factory: TableFactory,
        settings: Settings | None = None,
        handles: TableHandles = TABLE_HANDLES,
    ) -> None:
        self.factory = factory
        self.settings = settings or get_settings()
        self.handles = handles

    def Create(self, connection: apsw.Connection, modulename: str, databasename: str,
               tablename: str, *args: str) -> tuple[str, VirtualTable]:
        plugin: TablePlugin = self.factory()
        if not len(plugin.columns):
            raise AttachError(f"Table '{tablename}' declares no columns")
        handle = self.handles.add(TableContent(plugin=plugin))
        return plugin.statement(), VirtualTable(self, handle)

    Connect = Create


class VirtualTable:
    """Table callbacks; holds a handle rather than the content itself."""

    def __init__(self, module: VirtualTableModule, handle: int) -> None:
        self.module = module
        self.handle = handle

    @property
    def content(self) -> TableContent:
        return self.module.handles.get(self.handle)

    def BestIndexObject(self, index_info: apsw.IndexInfo) -> bool:
        candidates = [
            CandidatePredicate(
                column=index_info.get_aConstraint_iColumn(i),
                op=index_info.get_aConstraint_op(i),
                usable=index_info.get_aConstraint_usable(i),
            )
            for i in range(index_info.nConstraint)
        ]
        plan = plan_constraints(self.content.schema, candidates)
        for i, argv_index in enumerate(plan.argv_indexes):
            if argv_index:
                index_info.set_aConstraintUsage_argvIndex(i, argv_index)
        index_info.idxStr = plan.idx_str
        index_info.estimatedCost = plan.estimated_cost
        return True

    def Open(self) -> VirtualTableCursor:
        settings = self.module.settings
        return VirtualTableCursor(
            Cursor(
                self.content,
                sentinel=settings.coercion_sentinel,
                absorb_errors=settings.absorb_generate_errors,
            )
        )

    def Disconnect(self) -> None:
        self.module.handles.release(self.handle)

    Destroy = Disconnect


class VirtualTableCursor:
    """Cursor callbacks forwarding to a core Cursor."""

    def __init__(self, cursor: Cursor) -> None:
        self.cursor = cursor

    def Filter(self, indexnum: int, indexname: str | None, constraintargs: tuple[Any, ...] | None) -> None:
        self.cursor.filter(ConstraintSet.decode(indexname), constraintargs or ())

    def Eof(self) -> bool:
        return self.cursor.eof()

    def Next(self) -> None:
        self.cursor.next()

    def Rowid(self) -> int:
        return self.cursor.rowid()

    def Column(self, number: int) -> Any:
        return self.cursor.column(number)

    def Close(self) -> None:
        self.cursor.close()


def attach_table(
    connection: apsw.Connection,
    name: str,
    factory: TableFactory,
    settings: Settings | None = None,
) -> None:
    """Register the callback module for ``name`` and create its table.

    Raises:
        AttachError: If the name is not a plain identifier or the engine
            rejects the module or the table.
    """
    settings = settings or get_settings()
    for identifier in (name, settings.database):
        if not _IDENTIFIER_RE.fullmatch(identifier):
            raise AttachError(f"Invalid identifier: {identifier!r}")
    module = VirtualTableModule(factory, settings)
    try:
        connection.createmodule(name, module, use_bestindex_object=True)
        connection.cursor().execute(
            f"CREATE VIRTUAL TABLE {settings.database}.{name} USING {name}"
        )
    except (apsw.Error, VirtualTableError) as e:
        raise AttachError(f"Failed to attach table '{name}': {e}") from e
    logger.info("table_attached", table=name, database=settings.database)


@dataclass
class AttachReport:
    """Outcome of attaching every registered table."""

    attached: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def attach_virtual_tables(
    connection: apsw.Connection,
    registry: TableRegistry = REGISTERED_TABLES,
    settings: Settings | None = None,
) -> AttachReport:
    """Attach every registered table, continuing past individual failures."""
    report = AttachReport()
    for name, factory in registry.items():
        try:
            attach_table(connection, name, factory, settings)
        except AttachError as e:
            logger.warning("table_attach_failed", table=name, error=str(e))
            report.failed[name] = str(e)
        else:
            report.attached.append(name)
    return report
