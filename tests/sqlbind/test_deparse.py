import pytest
from sqlglot import exp

from sqlbind import ListArg, TraversalError, deparse, parse


def assert_roundtrip(sql: str) -> None:
    """Assert that the canonical form is a fixed point and re-parses to the same tree."""
    tree = parse(sql)
    canonical = deparse(tree)
    reparsed = parse(canonical)
    assert deparse(reparsed) == canonical, f"canonical form not stable for {sql!r}: {canonical!r}"
    assert reparsed == tree


class TestDeparse:
    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("select a,b from t", "SELECT a, b FROM t"),
            ("SELECT DISTINCT a FROM t", "SELECT DISTINCT a FROM t"),
            ("select id from users where id in (1,2)", "SELECT id FROM users WHERE id IN (1, 2)"),
            ("SELECT * FROM t WHERE a = :v1", "SELECT * FROM t WHERE a = :v1"),
            ("SELECT * FROM t WHERE a IN ::v1", "SELECT * FROM t WHERE a IN ::v1"),
            ("SELECT * FROM t WHERE a = -5", "SELECT * FROM t WHERE a = -5"),
            ("SELECT 1 - -2", "SELECT 1 - -2"),
            ("SELECT - -1", "SELECT 1"),
        ],
    )
    def test_canonical(self, sql: str, expected: str):
        assert deparse(parse(sql)) == expected

    def test_sub_expression(self):
        assert deparse(parse("SELECT a FROM t WHERE b = 1").args["where"].this) == "b = 1"

    def test_list_arg_node(self):
        assert deparse(ListArg(this="v3")) == "::v3"

    def test_placeholder_node(self):
        assert deparse(exp.Placeholder(this="v2")) == ":v2"


class TestRoundtrip:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT a, b FROM t WHERE a = 1 AND b = 'x'",
            "SELECT * FROM t WHERE a = :v1 AND b IN ::v2",
            "SELECT * FROM t WHERE a NOT IN ::v1",
            "SELECT a FROM t1 JOIN t2 ON t1.id = t2.id WHERE t2.x > 3 ORDER BY a DESC LIMIT 5",
            "INSERT INTO t (a, b) VALUES (1, 'x'), (2, 'y')",
            "UPDATE t SET a = a + 1 WHERE id = 2",
            "DELETE FROM t WHERE a IS NULL",
            "SELECT a FROM t UNION ALL SELECT b FROM u",
            "SELECT CASE WHEN a = 1 THEN 'one' ELSE 'other' END FROM t",
            "SELECT * FROM t WHERE a BETWEEN -1 AND 10",
        ],
    )
    def test_roundtrip(self, sql: str):
        assert_roundtrip(sql)


class TestDeparseErrors:
    def test_malformed_tree(self):
        stmt = parse("SELECT a FROM t WHERE b = 1")
        stmt.args["where"].args["this"] = object()
        with pytest.raises(TraversalError) as exc_info:
            deparse(stmt)
        assert exc_info.value.path == "where.this"

    def test_non_expression(self):
        with pytest.raises(TraversalError):
            deparse("SELECT 1")  # type: ignore[arg-type]
