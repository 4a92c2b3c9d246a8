"""Parsing module for table spec files."""

from virtual_tables.parsing.tablespec_lexer import TableSpecLexer
from virtual_tables.parsing.tablespec_parser import ColumnSpec, TableSpec, TableSpecParser

__all__ = [
    "ColumnSpec",
    "TableSpec",
    "TableSpecLexer",
    "TableSpecParser",
]
