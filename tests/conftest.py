"""Shared fixtures for the virtual table tests."""

import apsw
import pytest

from virtual_tables.config import Settings
from virtual_tables.table import TableContent, TablePlugin
from virtual_tables.types import Affinity, ColumnSchema


class ProcessesTable(TablePlugin):
    """Table over a fixed row list that records every request it sees."""

    name = "processes"
    columns = ColumnSchema([("pid", Affinity.BIGINT), ("name", Affinity.TEXT)])

    def __init__(self, rows=None):
        if rows is None:
            rows = [{"pid": "100", "name": "init"}, {"pid": "7", "name": "bad"}]
        self.rows = rows
        self.contexts = []

    def generate(self, context):
        self.contexts.append(context)
        return list(self.rows)


@pytest.fixture
def processes():
    """A processes table returning two rows."""
    return ProcessesTable()


@pytest.fixture
def make_processes():
    """Factory for processes tables with custom rows."""
    return ProcessesTable


@pytest.fixture
def content(processes):
    """Adapter state for the processes table."""
    return TableContent(plugin=processes)


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def connection():
    """An in-memory SQLite connection."""
    conn = apsw.Connection(":memory:")
    yield conn
    conn.close()


@pytest.fixture(autouse=True)
def keep_default_logging(monkeypatch):
    """Stop the shell from reconfiguring structlog for the whole test session."""
    monkeypatch.setattr("virtual_tables.shell.configure_logging", lambda settings=None: None)
