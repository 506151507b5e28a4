"""Convenience functions for extracting common information from parsed SQL trees."""

from __future__ import annotations

from collections.abc import Generator
from typing import TypeVar

from sqlglot import exp

from sqlbind.walk import walk

_E = TypeVar("_E", bound=exp.Expression)


def find_nodes(tree: exp.Expression, node_type: type[_E] | tuple[type[_E], ...]) -> Generator[_E, None, None]:
    """Yield all nodes matching *node_type* from a tree.

    Walks the tree in depth-first pre-order (same as :func:`~sqlbind.walk`) and yields every node that is an
    instance of *node_type*.

    Args:
        tree: Any expression.
        node_type: Expression class (or tuple of classes) to match, e.g. ``exp.Column``.

    Yields:
        Matching instances in depth-first pre-order.

    Raises:
        TraversalError: If the tree is malformed.
    """
    for _field_name, node in walk(tree):
        if isinstance(node, node_type):
            yield node


def extract_tables(tree: exp.Expression) -> list[str]:
    """Return table names referenced in a tree.

    Results preserve encounter order and include duplicates; ``"schema.table"`` when qualified.
    """
    return [".".join(part for part in (t.catalog, t.db, t.name) if part) for t in find_nodes(tree, exp.Table)]


def extract_columns(tree: exp.Expression) -> list[str]:
    """Return column references found in a tree, in encounter order and including duplicates."""
    return [
        f"{c.table}.{c.name}" if c.table else c.name
        for c in find_nodes(tree, exp.Column)
        if not isinstance(c.this, exp.Star)
    ]
