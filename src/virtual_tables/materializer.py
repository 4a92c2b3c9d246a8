"""Filter passes: build the query context, run the data source, store rows."""

from __future__ import annotations

from typing import Any, Sequence

import structlog

from virtual_tables.constraints import ConstraintSet, QueryContext
from virtual_tables.errors import GenerateError, PlanMismatchError
from virtual_tables.table import RowBuffer, TableContent, TablePlugin
from virtual_tables.types import ColumnSchema

logger = structlog.get_logger(__name__)


def literal_text(value: Any) -> str:
    """Render a value bound by the engine as literal expression text."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def build_context(
    schema: ColumnSchema, constraints: ConstraintSet, values: Sequence[Any]
) -> QueryContext:
    """Create the request for one filter pass.

    Every declared column gets a ConstraintList, even without predicates.
    The ``i``-th bound value completes the ``i``-th planned constraint.
    """
    if len(values) > len(constraints):
        raise PlanMismatchError(
            f"Engine bound {len(values)} values for {len(constraints)} planned constraints"
        )
    context = QueryContext.for_columns(schema)
    for column, constraint in constraints.bind([literal_text(v) for v in values]):
        context.constraints[column].add(constraint)
    return context


def materialize(plugin: TablePlugin, context: QueryContext) -> RowBuffer:
    """Run ``generate`` and store its rows by column, in arrival order."""
    names = plugin.columns.names
    stored: dict[str, list[str]] = {name: [] for name in names}
    count = 0
    for row in plugin.generate(context):
        for name in names:
            value = row.get(name)
            stored[name].append("" if value is None else str(value))
        count += 1
    return RowBuffer({name: tuple(values) for name, values in stored.items()}, count)


def filter_pass(
    content: TableContent,
    constraints: ConstraintSet,
    values: Sequence[Any],
    *,
    absorb_errors: bool = False,
) -> RowBuffer:
    """Execute one complete filter pass and publish the new rows on ``content``.

    The table's diagnostics are cleared first, so they only ever hold the
    warnings of the latest pass.

    Args:
        content: State of the table being scanned.
        constraints: Predicates accepted when the statement was planned.
        values: Values bound by the engine, aligned with ``constraints``.
        absorb_errors: Produce zero rows instead of raising when the data
            source fails.

    Returns:
        The freshly materialized rows.

    Raises:
        GenerateError: If the data source raised and errors are not absorbed.
    """
    content.constraints = constraints
    content.diagnostics.clear()
    context = build_context(content.schema, constraints, values)
    try:
        rows = materialize(content.plugin, context)
    except Exception as e:
        logger.error("generate_failed", table=content.name, error=str(e))
        if not absorb_errors:
            raise GenerateError(f"Table '{content.name}' failed to generate rows: {e}") from e
        rows = RowBuffer.empty(content.schema)
    content.rows = rows
    logger.debug(
        "filter_pass",
        table=content.name,
        constraints=len(constraints),
        rows=rows.row_count,
    )
    return rows
