"""Property-based fuzz tests for scanning, parsing and normalization.

All tests in this module are marked ``@pytest.mark.fuzz`` so they are excluded from the default test run.  Use
``pytest -m fuzz`` to execute.
"""

from __future__ import annotations

import os
import string

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings
from hypothesis import strategies as st

from sqlglot import exp

from sqlbind import ParseError, deparse, find_nodes, get_bindvars, normalize, normalize_sql, parse, scan
from sqlbind.dialect import STATEMENT_TYPES
from sqlbind.query import INT64_MAX, INT64_MIN

pytestmark = pytest.mark.fuzz

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MAX_EXAMPLES = int(os.environ.get("HYPOTHESIS_MAX_EXAMPLES", "500"))

# ---------------------------------------------------------------------------
# SQL-biased input strategy
# ---------------------------------------------------------------------------

_SQL_KEYWORDS = [
    "SELECT",
    "FROM",
    "WHERE",
    "INSERT",
    "INTO",
    "VALUES",
    "UPDATE",
    "SET",
    "DELETE",
    "JOIN",
    "LEFT",
    "ON",
    "AND",
    "OR",
    "NOT",
    "NULL",
    "IS",
    "IN",
    "AS",
    "ORDER",
    "BY",
    "GROUP",
    "HAVING",
    "LIMIT",
    "OFFSET",
    "UNION",
    "ALL",
    "EXISTS",
    "BETWEEN",
    "LIKE",
    "CASE",
    "WHEN",
    "THEN",
    "ELSE",
    "END",
]

_SQL_OPERATORS = ["=", "<>", "!=", "<", ">", "<=", ">=", "<=>", "+", "-", "*", "/", "%", "~", "|", "&", "^"]

_SQL_PUNCTUATION = [";", "(", ")", ",", ".", "'", '"', "`", ":", "::", "@", "#", "\\", "--", "/*"]

_sql_keyword = st.sampled_from(_SQL_KEYWORDS)
_sql_operator = st.sampled_from(_SQL_OPERATORS)
_sql_punctuation = st.sampled_from(_SQL_PUNCTUATION)
_sql_identifier = st.from_regex(r"[a-z_][a-z0-9_]{0,15}", fullmatch=True)
_sql_literal = st.one_of(
    st.integers(-999999, 999999).map(str),
    st.floats(allow_nan=False, allow_infinity=False).map(repr),
    st.from_regex(r"'[^']{0,20}'", fullmatch=True),
    st.from_regex(r"0x[0-9A-F]{1,8}", fullmatch=True),
    st.from_regex(r"::?v[0-9]{1,2}", fullmatch=True),
)

_sql_fragment = st.lists(
    st.one_of(_sql_keyword, _sql_operator, _sql_punctuation, _sql_identifier, _sql_literal),
    min_size=1,
    max_size=30,
).map(" ".join)

_edge_cases = st.one_of(
    st.just(""),
    st.just("\x00"),
    st.just("SELECT " + "x" * 100_000),
    st.just("SELECT " + "(" * 500 + "1" + ")" * 500),
    st.just("SELECT " + "-" * 50 + "1"),
)

sql_input = st.one_of(
    st.text(),
    _sql_fragment,
    _edge_cases,
)

# ---------------------------------------------------------------------------
# Generated WHERE clauses with known literals
# ---------------------------------------------------------------------------

_STRING_ALPHABET = string.ascii_letters + string.digits + " '%_,()"

_int_literal = st.integers(INT64_MIN, INT64_MAX).map(lambda v: exp.Literal(this=str(v), is_string=False))
_str_literal = st.text(alphabet=_STRING_ALPHABET, max_size=20).map(exp.Literal.string)
_comparison_literals = st.lists(st.one_of(_int_literal, _str_literal), min_size=1, max_size=12)


def _where_sql(literals: list[exp.Literal]) -> str:
    conditions = [f"c{i} = {deparse(lit)}" for i, lit in enumerate(literals)]
    return "SELECT * FROM t WHERE " + " AND ".join(conditions)


class TestFuzz:
    @settings(max_examples=MAX_EXAMPLES)
    @given(sql=sql_input)
    def test_scan_does_not_crash(self, sql: str) -> None:
        try:
            tokens = scan(sql)
            assert all(0 <= t.start <= len(sql) for t in tokens)
        except ParseError:
            pass

    @settings(max_examples=MAX_EXAMPLES)
    @given(sql=sql_input)
    def test_parse_does_not_crash(self, sql: str) -> None:
        try:
            stmt = parse(sql)
            assert isinstance(stmt, STATEMENT_TYPES)
        except ParseError:
            pass

    @settings(max_examples=MAX_EXAMPLES)
    @given(sql=sql_input)
    def test_normalize_does_not_crash(self, sql: str) -> None:
        try:
            stmt = parse(sql)
        except ParseError:
            return
        bind_vars: dict = {}
        normalize(stmt, bind_vars, "v")
        # Every generated name is referenced by the rewritten tree.
        assert set(bind_vars) <= get_bindvars(stmt)
        assert isinstance(deparse(stmt), str)


class TestNormalizeProperties:
    @settings(max_examples=MAX_EXAMPLES)
    @given(literals=_comparison_literals)
    def test_one_bind_variable_per_distinct_value(self, literals: list[exp.Literal]) -> None:
        stmt = parse(_where_sql(literals))
        bind_vars: dict = {}
        normalize(stmt, bind_vars, "v")
        distinct = {(lit.is_string, lit.this) for lit in literals}
        assert len(bind_vars) == len(distinct)
        assert list(find_nodes(stmt, exp.Literal)) == []
        assert {arg.name for arg in find_nodes(stmt, exp.Placeholder)} == set(bind_vars)

    @settings(max_examples=MAX_EXAMPLES)
    @given(literals=_comparison_literals, reserved=st.sets(st.integers(1, 15), max_size=8))
    def test_generated_names_avoid_existing_placeholders(
        self, literals: list[exp.Literal], reserved: set[int]
    ) -> None:
        existing = " AND ".join(f"r{i} = :v{i}" for i in sorted(reserved))
        sql = _where_sql(literals) + (f" AND {existing}" if existing else "")
        stmt = parse(sql)
        bind_vars: dict = {}
        normalize(stmt, bind_vars, "v")
        assert not set(bind_vars) & {f"v{i}" for i in reserved}

    @settings(max_examples=MAX_EXAMPLES)
    @given(literals=_comparison_literals)
    def test_normalized_query_roundtrips(self, literals: list[exp.Literal]) -> None:
        result = normalize_sql(_where_sql(literals))
        assert deparse(parse(result.query)) == result.query

    @settings(max_examples=MAX_EXAMPLES)
    @given(value=st.text(alphabet=_STRING_ALPHABET))
    def test_string_literal_roundtrips(self, value: str) -> None:
        literal = exp.Literal.string(value)
        stmt = parse(f"SELECT {deparse(literal)}")
        assert stmt.expressions[0] == literal

    @settings(max_examples=MAX_EXAMPLES)
    @given(values=st.lists(st.integers(INT64_MIN, INT64_MAX), min_size=1, max_size=10))
    def test_in_list_binds_all_values_in_order(self, values: list[int]) -> None:
        sql = "SELECT * FROM t WHERE a IN (" + ", ".join(map(str, values)) + ")"
        result = normalize_sql(sql)
        assert result.query == "SELECT * FROM t WHERE a IN ::v1"
        assert [int(v.value) for v in result.bind_vars["v1"].values] == values
