"""Tests for loading table spec files into plugins."""

import textwrap
import uuid

import apsw
import pytest

from virtual_tables.engine import attach_table
from virtual_tables.errors import TableSpecError
from virtual_tables.loader import (
    load_table_spec,
    plugin_from_spec,
    register_spec_files,
    resolve_implementation,
)
from virtual_tables.registry import TableRegistry
from virtual_tables.types import Affinity

SOURCE = '''
def generate(context):
    users = [{"uid": "0", "name": "root"}, {"uid": "1000", "name": "alice"}]
    wanted = context["uid"].get_all(EQ)
    return [u for u in users if not wanted or u["uid"] in wanted]

NOT_CALLABLE = 3
'''


@pytest.fixture
def impl_module(tmp_path, monkeypatch):
    """Write an importable generate module and return its unique name."""
    name = f"users_impl_{uuid.uuid4().hex}"
    (tmp_path / f"{name}.py").write_text(
        "from virtual_tables.constraints import ConstraintOperator\n"
        "EQ = ConstraintOperator.EQ\n" + SOURCE
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


@pytest.fixture
def spec_file(tmp_path, impl_module):
    """A spec file for a users table backed by impl_module."""
    path = tmp_path / "users.table"
    path.write_text(
        textwrap.dedent(
            f"""
            table_name("users")
            description("Local users.")
            schema([
                Column("uid", BIGINT, "User ID"),
                Column("name", TEXT, "Login name"),
            ])
            implementation("{impl_module}:generate")
            """
        )
    )
    return path


class TestResolveImplementation:
    """Tests for resolve_implementation."""

    def test_resolve(self, impl_module):
        """Test importing a module:function reference."""
        func = resolve_implementation(f"{impl_module}:generate")
        assert callable(func)
        assert func.__name__ == "generate"

    @pytest.mark.parametrize("target", ["generate", ":generate", "module:", ""])
    def test_bad_format(self, target):
        """Test that references must name a module and a function."""
        with pytest.raises(TableSpecError, match="module:function"):
            resolve_implementation(target)

    def test_missing_module(self):
        """Test error on a module that cannot be imported."""
        with pytest.raises(TableSpecError, match="Cannot import"):
            resolve_implementation(f"missing_{uuid.uuid4().hex}:generate")

    def test_missing_function(self, impl_module):
        """Test error on a missing attribute."""
        with pytest.raises(TableSpecError, match="does not exist"):
            resolve_implementation(f"{impl_module}:nothing")

    def test_not_callable(self, impl_module):
        """Test error on an attribute that is not a function."""
        with pytest.raises(TableSpecError, match="not callable"):
            resolve_implementation(f"{impl_module}:NOT_CALLABLE")


class TestPluginFromSpec:
    """Tests for building plugins from spec files."""

    def test_plugin_class(self, spec_file):
        """Test the generated plugin's name and schema."""
        plugin_class = plugin_from_spec(load_table_spec(spec_file))
        plugin = plugin_class()
        assert plugin.name == "users"
        assert plugin.columns.names == ["uid", "name"]
        assert plugin.columns.affinities == [Affinity.BIGINT, Affinity.TEXT]
        assert plugin.statement() == 'CREATE TABLE "users"("uid" BIGINT, "name" TEXT)'

    def test_no_implementation(self, tmp_path):
        """Test that a table spec without implementation cannot become a plugin."""
        path = tmp_path / "t.table"
        path.write_text('table_name("t") schema([Column("x", TEXT)])')
        with pytest.raises(TableSpecError, match="no implementation"):
            plugin_from_spec(load_table_spec(path))

    def test_query_through_engine(self, spec_file, settings):
        """Test that a table declared in a file answers SQL with pushed-down predicates."""
        plugin_class = plugin_from_spec(load_table_spec(spec_file))
        connection = apsw.Connection(":memory:")
        try:
            attach_table(connection, "users", plugin_class, settings)
            rows = connection.cursor().execute("SELECT name FROM users WHERE uid = 1000").fetchall()
        finally:
            connection.close()
        assert rows == [("alice",)]


class TestRegisterSpecFiles:
    """Tests for register_spec_files."""

    def test_register(self, spec_file):
        """Test registering every table from a list of files."""
        registry = TableRegistry()
        assert register_spec_files([spec_file], registry) == ["users"]
        assert registry.get("users")().columns.names == ["uid", "name"]

    def test_register_duplicate(self, spec_file):
        """Test that the same table cannot be loaded twice."""
        registry = TableRegistry()
        with pytest.raises(ValueError, match="already registered"):
            register_spec_files([spec_file, spec_file], registry)

