"""Turn table spec files into registered table plugins."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from virtual_tables.constraints import QueryContext
from virtual_tables.errors import TableSpecError
from virtual_tables.parsing import TableSpec, TableSpecParser
from virtual_tables.registry import REGISTERED_TABLES, TableRegistry
from virtual_tables.table import TablePlugin

GenerateFunction = Callable[[QueryContext], Iterable[Mapping[str, Any]]]


def load_table_spec(path: Path | str) -> TableSpec:
    """Parse a spec file from disk."""
    path = Path(path)
    return TableSpecParser().parse(path.read_text(encoding="utf-8"), source=str(path))


def resolve_implementation(target: str) -> GenerateFunction:
    """Import a ``module:function`` reference."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise TableSpecError(f"Implementation must look like 'module:function', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TableSpecError(f"Cannot import '{module_name}': {e}") from e

    func = module
    for part in attr.split("."):
        func = getattr(func, part, None)
        if func is None:
            raise TableSpecError(f"'{target}' does not exist")
    if not callable(func):
        raise TableSpecError(f"'{target}' is not callable")
    return func  # type: ignore[return-value]


def plugin_from_spec(spec: TableSpec) -> type[TablePlugin]:
    """Build a TablePlugin subclass whose ``generate`` calls the declared implementation."""
    if spec.implementation is None:
        raise TableSpecError(f"Table '{spec.name}' has no implementation")
    func = resolve_implementation(spec.implementation)

    def generate(self: TablePlugin, context: QueryContext) -> Iterable[Mapping[str, Any]]:
        return func(context)

    return type(
        f"{spec.name.title().replace('_', '')}Table",
        (TablePlugin,),
        {
            "name": spec.name,
            "columns": spec.columns,
            "description": spec.description,
            "generate": generate,
        },
    )


def register_spec_files(
    paths: Iterable[Path | str], registry: TableRegistry = REGISTERED_TABLES
) -> list[str]:
    """Load each spec file and register its table; returns the registered names."""
    names = []
    for path in paths:
        spec = load_table_spec(path)
        registry.register(spec.name, plugin_from_spec(spec))
        names.append(spec.name)
    return names
