"""Normalize SQL statements into literal-free shapes with typed bind variables."""

from sqlbind import query
from sqlbind.deparse import deparse
from sqlbind.dialect import ListArg
from sqlbind.errors import ParseError, SqlBindError, TraversalError
from sqlbind.helpers import extract_columns, extract_tables, find_nodes
from sqlbind.normalize import (
    DEFAULT_PREFIX,
    NormalizeResult,
    get_bindvars,
    literal_to_bind_variable,
    normalize,
    normalize_sql,
)
from sqlbind.parse import parse
from sqlbind.query import BindVariable, Type, Value
from sqlbind.scan import Token, TokenType, scan
from sqlbind.walk import Outcome, Rewritten, Slot, Visitor, rewrite, walk

__all__ = [
    "BindVariable",
    "DEFAULT_PREFIX",
    "deparse",
    "extract_columns",
    "extract_tables",
    "find_nodes",
    "get_bindvars",
    "ListArg",
    "literal_to_bind_variable",
    "normalize_sql",
    "normalize",
    "NormalizeResult",
    "Outcome",
    "parse",
    "ParseError",
    "query",
    "rewrite",
    "Rewritten",
    "scan",
    "Slot",
    "SqlBindError",
    "Token",
    "TokenType",
    "TraversalError",
    "Type",
    "Value",
    "Visitor",
    "walk",
]
