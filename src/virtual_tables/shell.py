"""Interactive SQL shell over the attached virtual tables."""

from __future__ import annotations

import argparse
import re
import readline  # noqa: F401 - enables line editing in input()
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import apsw
import structlog

from virtual_tables.config import Settings, get_settings
from virtual_tables.engine import AttachReport, attach_virtual_tables
from virtual_tables.errors import VirtualTableError
from virtual_tables.loader import register_spec_files
from virtual_tables.logs import configure_logging
from virtual_tables.registry import REGISTERED_TABLES, TableRegistry

logger = structlog.get_logger(__name__)


@dataclass
class QueryResult:
    """Rows returned by one SQL statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display."""
    if value is None:
        return "NULL"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, bytes):
        return f"x'{value.hex()}'"
    s = str(value)
    if len(s) > max_width:
        return s[: max_width - 3] + "..."
    return s


def print_result(result: QueryResult, out=None) -> None:
    """Print query results in a formatted table."""
    out = out or sys.stdout
    if not result.columns:
        return
    if not result.rows:
        print("(no results)", file=out)
        return

    widths = [len(col) for col in result.columns]
    formatted = [[format_value(v) for v in row] for row in result.rows]
    for row in formatted:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], len(val))

    header = " | ".join(col.ljust(widths[i]) for i, col in enumerate(result.columns))
    print(header, file=out)
    print("-" * len(header), file=out)
    for row in formatted:
        print(" | ".join(val.ljust(widths[i]) for i, val in enumerate(row)), file=out)

    count = len(result.rows)
    print(f"\n({count} row{'s' if count != 1 else ''})", file=out)


def split_statements(sql: str) -> list[str]:
    """Split SQL text into complete statements, dropping empty ones.

    A ``;`` only ends a statement where SQLite agrees the text before it is
    complete, so semicolons inside strings and comments are kept.
    """
    statements = []
    start = 0
    for match in re.finditer(";", sql):
        candidate = sql[start:match.end()]
        if not apsw.complete(candidate):
            continue
        if candidate.strip(" \t\r\n;"):
            statements.append(candidate)
        start = match.end()
    rest = sql[start:]
    if rest.strip():
        statements.append(rest)
    return statements


class Shell:
    """An in-memory SQLite connection with every registered table attached."""

    def __init__(self, registry: TableRegistry, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.registry = registry
        self.connection = apsw.Connection(":memory:")
        self.report: AttachReport = attach_virtual_tables(
            self.connection, registry, self.settings
        )
        logger.debug(
            "shell_opened",
            attached=self.report.attached,
            failed=sorted(self.report.failed),
        )

    @classmethod
    def open(cls, spec_paths: list[Path], settings: Settings | None = None) -> Shell:
        """Build a shell from the process registry plus the given spec files."""
        settings = settings or get_settings()
        registry = TableRegistry()
        for name, factory in REGISTERED_TABLES.items():
            registry.register(name, factory)
        register_spec_files([*settings.spec_paths, *spec_paths], registry)
        registry.seal()
        return cls(registry, settings)

    def query(self, sql: str) -> QueryResult:
        """Execute one statement and collect its rows."""
        result = QueryResult()
        cursor = self.connection.cursor()
        cursor.execute(sql)
        try:
            result.columns = [d[0] for d in cursor.getdescription()]
        except apsw.ExecutionCompleteError:
            return result
        result.rows = list(cursor)
        return result

    def execute(self, line: str, out=None) -> bool:
        """Run a dot-command or SQL; returns False when the shell should exit.

        SQL text holding several statements prints one result per statement.
        """
        out = out or sys.stdout
        command, _, arg = line.strip().partition(" ")
        if command in (".quit", ".exit"):
            return False
        if command == ".tables":
            for name in self.report.attached:
                print(name, file=out)
        elif command == ".schema":
            names = [arg.strip()] if arg.strip() else self.report.attached
            for name in names:
                print(self.registry.get_or_raise(name)().statement() + ";", file=out)
        elif command == ".help":
            print_help(out)
        else:
            for sql in split_statements(line):
                print_result(self.query(sql), out)
        return True

    def close(self) -> None:
        self.connection.close()


def print_help(out=None) -> None:
    """Print the shell's commands."""
    out = out or sys.stdout
    print(
        "Enter SQL terminated by ';'. Commands:\n"
        "  .tables          List attached tables\n"
        "  .schema [NAME]   Show table declarations\n"
        "  .help            Show this help\n"
        "  .quit            Exit",
        file=out,
    )


def run_repl(shell: Shell) -> int:
    """Run the interactive loop."""
    print("Virtual tables shell")
    print(f"Attached: {', '.join(shell.report.attached) or '(none)'}")
    print("Type '.help' for commands, '.quit' to quit.\n")

    buffer = ""
    while True:
        try:
            line = input("...> " if buffer else "vtables> ")
        except EOFError:
            print()
            break

        if not buffer and line.strip().startswith("."):
            try:
                if not shell.execute(line):
                    break
            except (KeyError, VirtualTableError) as e:
                print(f"Error: {e}")
            continue

        buffer = f"{buffer}\n{line}" if buffer else line
        if not buffer.strip() or not apsw.complete(buffer):
            continue
        try:
            shell.execute(buffer)
        except (apsw.Error, VirtualTableError) as e:
            print(f"Error: {e}")
        buffer = ""
    return 0


def run_file(shell: Shell, path: Path, verbose: bool = False) -> int:
    """Execute the SQL in a file."""
    sql = path.read_text(encoding="utf-8")
    if verbose:
        print(sql.strip())
    try:
        shell.execute(sql)
    except (apsw.Error, VirtualTableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Query data sources through SQLite virtual tables"
    )
    arg_parser.add_argument(
        "-t", "--table",
        type=Path,
        action="append",
        default=[],
        help="Table spec file to load (repeatable)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute a single statement and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute SQL from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print the SQL before executing (for -f/--file)",
    )

    args = arg_parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    for path in args.table:
        if not path.exists():
            print(f"Error: Table spec not found: {path}", file=sys.stderr)
            return 1

    try:
        shell = Shell.open(args.table, settings)
    except (SyntaxError, ValueError, VirtualTableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.file:
            if not args.file.exists():
                print(f"Error: File not found: {args.file}", file=sys.stderr)
                return 1
            return run_file(shell, args.file, args.verbose)

        if args.command:
            try:
                shell.execute(args.command)
            except (apsw.Error, KeyError, VirtualTableError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            return 0

        return run_repl(shell)
    finally:
        shell.close()


if __name__ == "__main__":
    sys.exit(main())
