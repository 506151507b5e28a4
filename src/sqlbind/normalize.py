"""Statement normalization: replace literal constants with named bind variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, NamedTuple

from sqlglot import exp

from sqlbind.deparse import deparse
from sqlbind.dialect import STATEMENT_TYPES, ListArg
from sqlbind.errors import TraversalError
from sqlbind.helpers import find_nodes
from sqlbind.parse import parse
from sqlbind.query import Type, Value, new_value, tuple_bind_variable, value_bind_variable
from sqlbind.walk import Outcome, Rewritten, Slot, VisitResult, rewrite

if TYPE_CHECKING:
    from google.protobuf.message import Message

DEFAULT_PREFIX: Final = "v"

# Prepended to the dedup key of string literals so that '123' and 123 never share a bind variable.
_STRING_KEY_SENTINEL: Final = b"'"

# Arguments of an IN predicate other than a literal tuple: a sub-select, UNNEST or an existing ::name.
_IN_NON_TUPLE_ARGS: Final = ("query", "unnest", "field")


class NormalizeResult(NamedTuple):
    """Result of normalizing a SQL string.

    Attributes:
        query: The statement text with literals replaced by ``:name`` / ``::name`` placeholders.
        bind_vars: Placeholder name to ``BindVariable`` message.
    """

    query: str
    bind_vars: dict[str, Message]


def _literal_type(node: exp.Literal, raw: bytes) -> Type:
    if node.is_string:
        return Type.VARBINARY
    return Type.INT64 if raw.lstrip(b"+-").isdigit() else Type.FLOAT64


def literal_to_bind_variable(node: exp.Expression) -> Message | None:
    """Convert a literal node into a typed ``BindVariable``.

    String literals become ``VARBINARY`` values holding the raw bytes verbatim, integral numbers ``INT64`` and other
    numbers ``FLOAT64``.  Everything else (hex and bit values, booleans, ``NULL``, non-literal nodes, numbers out of
    range) yields ``None``.
    """
    if not isinstance(node, exp.Literal):
        return None
    raw = node.this.encode("utf-8")
    try:
        return value_bind_variable(new_value(_literal_type(node, raw), raw))
    except ValueError:
        return None


def get_bindvars(stmt: exp.Expression) -> set[str]:
    """Return the names of the placeholders already referenced in *stmt*.

    Both scalar (``:name``) and list (``::name``) placeholders are collected, including those inside sub-selects.
    Anonymous ``?`` placeholders have no name and are ignored.

    Raises:
        TraversalError: If the tree is malformed.

    Example:
        >>> sorted(get_bindvars(parse("SELECT * FROM t WHERE a = :v1 AND b IN ::v2")))
        ['v1', 'v2']
    """
    return {node.name for node in find_nodes(stmt, (exp.Placeholder, ListArg)) if node.name}


def _new_name(prefix: str, counter: int, reserved: set[str]) -> tuple[str, int]:
    """Return the first ``prefix<n>`` with ``n >= counter`` that is not reserved, and the counter for the next call.

    The returned name is added to *reserved*.
    """
    while True:
        name = f"{prefix}{counter}"
        if name not in reserved:
            reserved.add(name)
            return name, counter + 1
        counter += 1


class _Normalizer:
    """Per-call state: reserved names, the name counter, the dedup index and the frozen tuple elements."""

    def __init__(self, bind_vars: dict[str, Message], prefix: str, reserved: set[str]) -> None:
        self._bind_vars = bind_vars
        self._prefix = prefix
        self._reserved = reserved
        self._counter = 1
        self._dedup: dict[bytes, str] = {}
        # ids of literal elements of IN tuples that could not be bound as a whole
        self._frozen: set[int] = set()

    def _allocate(self) -> str:
        name, self._counter = _new_name(self._prefix, self._counter, self._reserved)
        return name

    def visit(self, node: exp.Expression, slot: Slot | None) -> VisitResult:
        if isinstance(node, exp.Literal):
            return self._rewrite_literal(node)
        if isinstance(node, exp.In):
            self._rewrite_in_list(node)
        elif isinstance(node, exp.DataType):
            # Type parameters such as CHAR(10) are part of the type, not values.
            return Outcome.SKIP_SUBTREE
        return Outcome.UNCHANGED

    def _rewrite_literal(self, node: exp.Literal) -> VisitResult:
        if id(node) in self._frozen:
            return Outcome.UNCHANGED
        bind_variable = literal_to_bind_variable(node)
        if bind_variable is None:
            return Outcome.UNCHANGED
        key = node.this.encode("utf-8")
        if node.is_string:
            key = _STRING_KEY_SENTINEL + key
        name = self._dedup.get(key)
        if name is None:
            name = self._allocate()
            self._dedup[key] = name
            self._bind_vars[name] = bind_variable
        return Rewritten(exp.Placeholder(this=name))

    def _rewrite_in_list(self, node: exp.In) -> None:
        """Swap the tuple of an ``IN`` predicate for one ``::name`` when every element converts.

        Otherwise the tuple's own literal elements are frozen so that none of them is bound on its own, while
        sub-selects, nested tuples and expressions among the elements are still normalized.
        """
        elements = node.args.get("expressions")
        if not elements or any(node.args.get(arg) for arg in _IN_NON_TUPLE_ARGS):
            return
        values: list[Message] = []
        for element in elements:
            bind_variable = literal_to_bind_variable(element)
            if bind_variable is None:
                self._frozen.update(id(e) for e in elements if isinstance(e, exp.Literal))
                return
            values.append(Value(type=bind_variable.type, value=bind_variable.value))
        name = self._allocate()
        self._bind_vars[name] = tuple_bind_variable(values)
        node.set("expressions", [])
        node.set("field", ListArg(this=name))


def normalize(stmt: exp.Expression, bind_vars: dict[str, Message], prefix: str) -> None:
    """Rewrite *stmt* in place to use bind variables, adding their values to *bind_vars*.

    Every string, integer and float literal becomes a ``:name`` placeholder, and every ``IN`` / ``NOT IN`` tuple whose
    elements are all such literals becomes a single ``::name`` list placeholder.  Identical literals of the same kind
    share one placeholder; list placeholders are never shared.  Literals that cannot be converted (hex and bit
    values, out-of-range numbers) are left as they are, so the result is normalized where possible.

    Generated names are ``<prefix><n>`` and never collide with placeholders already present in *stmt* or with keys
    already in *bind_vars*; existing entries of *bind_vars* are never overwritten.

    Args:
        stmt: Parsed statement.  Mutated in place.
        bind_vars: Output mapping of placeholder name to ``BindVariable``.  Entries are only added.
        prefix: Prefix for generated placeholder names.

    Raises:
        TraversalError: If *stmt* is not a statement or the tree is malformed.  Nodes visited before the fault keep
            their rewrites.

    Example:
        >>> from sqlbind import deparse, parse
        >>> stmt = parse("SELECT * FROM t WHERE a = 5 AND b IN (1, 2)")
        >>> bind_vars = {}
        >>> normalize(stmt, bind_vars, "v")
        >>> deparse(stmt)
        'SELECT * FROM t WHERE a = :v1 AND b IN ::v2'
        >>> sorted(bind_vars)
        ['v1', 'v2']
    """
    if not isinstance(stmt, STATEMENT_TYPES):
        msg = f"expected a statement, got {type(stmt).__name__}"
        raise TraversalError(msg)
    reserved = get_bindvars(stmt) | set(bind_vars)
    rewrite(stmt, _Normalizer(bind_vars, prefix, reserved).visit)


def normalize_sql(sql: str, prefix: str = DEFAULT_PREFIX) -> NormalizeResult:
    """Parse, normalize and deparse a SQL statement in one call.

    Args:
        sql: A single SQL statement.
        prefix: Prefix for generated placeholder names.

    Returns:
        A :class:`NormalizeResult` with the rewritten query text and the extracted bind variables.

    Raises:
        ParseError: If the statement cannot be parsed.

    Example:
        >>> from sqlbind.query import to_python
        >>> result = normalize_sql("SELECT * FROM t WHERE a = 5 AND b = 'x'")
        >>> result.query
        'SELECT * FROM t WHERE a = :v1 AND b = :v2'
        >>> {name: to_python(bv) for name, bv in result.bind_vars.items()}
        {'v1': 5, 'v2': b'x'}
    """
    stmt = parse(sql)
    bind_vars: dict[str, Message] = {}
    normalize(stmt, bind_vars, prefix)
    return NormalizeResult(deparse(stmt), bind_vars)
