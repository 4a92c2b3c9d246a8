"""Parser for table spec files.

A spec file declares one table::

    table_name("processes")
    description("Running processes.")
    schema([
        Column("pid", BIGINT, "Process ID"),
        Column("name", TEXT),
    ])
    implementation("mypackage.procs:generate_processes")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from virtual_tables.errors import TableSpecError
from virtual_tables.parsing.tablespec_lexer import TableSpecLexer
from virtual_tables.types import AFFINITY_NAMES, ColumnDefinition, ColumnSchema


@dataclass
class ColumnSpec:
    """A column as written in the spec file, before type resolution."""

    name: str
    type_name: str
    description: str = ""
    lineno: int = 0


@dataclass
class TableSpec:
    """A parsed and resolved table declaration."""

    name: str
    columns: ColumnSchema
    implementation: str | None = None
    description: str = ""
    source: str | None = field(default=None, compare=False)


class TableSpecParser:
    """Parser for the table spec DSL."""

    tokens = TableSpecLexer.tokens

    def __init__(self) -> None:
        self.lexer = TableSpecLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_spec(self, p: yacc.YaccProduction) -> None:
        """spec : statement_list"""
        p[0] = p[1]

    def p_spec_empty(self, p: yacc.YaccProduction) -> None:
        """spec :"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1] + [p[2]]

    def p_statement_table_name(self, p: yacc.YaccProduction) -> None:
        """statement : TABLE_NAME LPAREN STRING RPAREN"""
        p[0] = ("table_name", p[3], p.lineno(1))

    def p_statement_description(self, p: yacc.YaccProduction) -> None:
        """statement : DESCRIPTION LPAREN STRING RPAREN"""
        p[0] = ("description", p[3], p.lineno(1))

    def p_statement_implementation(self, p: yacc.YaccProduction) -> None:
        """statement : IMPLEMENTATION LPAREN STRING RPAREN"""
        p[0] = ("implementation", p[3], p.lineno(1))

    def p_statement_schema(self, p: yacc.YaccProduction) -> None:
        """statement : SCHEMA LPAREN LBRACKET column_list RBRACKET RPAREN
                     | SCHEMA LPAREN LBRACKET column_list COMMA RBRACKET RPAREN"""
        p[0] = ("schema", p[4], p.lineno(1))

    def p_column_list_single(self, p: yacc.YaccProduction) -> None:
        """column_list : column"""
        p[0] = [p[1]]

    def p_column_list_multiple(self, p: yacc.YaccProduction) -> None:
        """column_list : column_list COMMA column"""
        p[0] = p[1] + [p[3]]

    def p_column(self, p: yacc.YaccProduction) -> None:
        """column : COLUMN LPAREN STRING COMMA IDENTIFIER RPAREN"""
        p[0] = ColumnSpec(name=p[3], type_name=p[5], lineno=p.lineno(1))

    def p_column_described(self, p: yacc.YaccProduction) -> None:
        """column : COLUMN LPAREN STRING COMMA IDENTIFIER COMMA STRING RPAREN"""
        p[0] = ColumnSpec(name=p[3], type_name=p[5], description=p[7], lineno=p.lineno(1))

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str, source: str | None = None) -> TableSpec:
        """Parse a spec file's text into a TableSpec.

        Raises:
            SyntaxError: If the text is not valid spec syntax.
            TableSpecError: If the declarations do not describe a valid table.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        statements = self.parser.parse(data, lexer=self.lexer.lexer)
        if not statements:
            raise TableSpecError("Table spec is empty")
        return self._resolve(statements, source)

    def _resolve(self, statements: list[tuple[str, Any, int]], source: str | None) -> TableSpec:
        """Check the statements form one complete table and resolve column types."""
        values: dict[str, Any] = {}
        for kind, value, lineno in statements:
            if kind in values:
                raise TableSpecError(f"'{kind}' is declared more than once (line {lineno})")
            values[kind] = value

        for required in ("table_name", "schema"):
            if required not in values:
                raise TableSpecError(f"Table spec is missing '{required}'")

        columns = []
        for column in values["schema"]:
            affinity = AFFINITY_NAMES.get(column.type_name)
            if affinity is None:
                raise TableSpecError(
                    f"Unknown column type '{column.type_name}' for '{column.name}' "
                    f"(line {column.lineno})"
                )
            columns.append(ColumnDefinition(column.name, affinity, column.description))

        try:
            schema = ColumnSchema(columns)
        except ValueError as e:
            raise TableSpecError(f"Table '{values['table_name']}': {e}") from e

        return TableSpec(
            name=values["table_name"],
            columns=schema,
            implementation=values.get("implementation"),
            description=values.get("description", ""),
            source=source,
        )
