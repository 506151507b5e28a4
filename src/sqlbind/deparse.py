"""SQL query deparsing via sqlglot."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlbind.dialect import DIALECT
from sqlbind.walk import check_tree

if TYPE_CHECKING:
    from sqlglot import exp


def deparse(tree: exp.Expression) -> str:
    """Convert an expression tree back into a SQL string.

    Renders with the sqlbind dialect's generator, so ``:name`` and ``::name`` placeholders come out as written.  This
    is the inverse of :func:`sqlbind.parse`.

    Note:
        The deparsed SQL is canonicalized by sqlglot and may differ from the original query in whitespace, casing,
        or spelling of equivalent operators while remaining semantically equivalent.

    Args:
        tree: A statement (as returned by :func:`sqlbind.parse`) or any sub-expression.

    Returns:
        The deparsed SQL string.

    Raises:
        TraversalError: If the tree is malformed.

    Example:
        >>> from sqlbind import parse, deparse
        >>> deparse(parse("select id from users where id in (1,2)"))
        'SELECT id FROM users WHERE id IN (1, 2)'
    """
    check_tree(tree)
    return DIALECT.generate(tree)
