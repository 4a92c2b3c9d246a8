"""Registry of table names and the factories that build their descriptors."""

from __future__ import annotations

from typing import Callable, Iterator, TypeVar

from virtual_tables.errors import RegistryClosedError
from virtual_tables.table import TablePlugin

TableFactory = Callable[[], TablePlugin]
P = TypeVar("P", bound=type[TablePlugin])


class TableRegistry:
    """Registry of all tables available for attachment.

    Populated at startup; ``seal`` makes it read-only before queries run.
    """

    def __init__(self) -> None:
        self._factories: dict[str, TableFactory] = {}
        self._sealed = False

    def register(self, name: str, factory: TableFactory) -> None:
        """Register a table factory under ``name``."""
        if self._sealed:
            raise RegistryClosedError(f"Cannot register table '{name}': registry is sealed")
        if name in self._factories:
            raise ValueError(f"Table '{name}' is already registered")
        self._factories[name] = factory

    def get(self, name: str) -> TableFactory | None:
        return self._factories.get(name)

    def get_or_raise(self, name: str) -> TableFactory:
        """Get a factory by name, raising if not found."""
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(f"Table '{name}' not found")
        return factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def items(self) -> list[tuple[str, TableFactory]]:
        return sorted(self._factories.items())

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._factories)


# Process-wide registry consulted when attaching tables
REGISTERED_TABLES = TableRegistry()


def register_table(cls: P) -> P:
    """Class decorator registering a TablePlugin subclass under its ``name``."""
    if not cls.name:
        raise ValueError(f"{cls.__name__} does not declare a table name")
    REGISTERED_TABLES.register(cls.name, cls)
    return cls
