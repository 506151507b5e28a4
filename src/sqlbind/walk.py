"""Tree walking, visitor pattern and in-place rewriting for sqlglot expression trees."""

from __future__ import annotations

import dataclasses
import enum
from typing import TYPE_CHECKING, NamedTuple, Union

from sqlglot import exp

from sqlbind.errors import TraversalError

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Iterator

_SCALAR_TYPES = (str, bytes, bool, int, float, enum.Enum)


class Slot(NamedTuple):
    """Location of a node inside its parent.

    Attributes:
        parent: The expression owning the argument.
        field_name: Argument key holding the child (e.g. ``"where"``, ``"expressions"``).
        index: Position within the argument when it holds a list, otherwise ``None``.
    """

    parent: exp.Expression
    field_name: str
    index: int | None = None

    def get(self) -> exp.Expression:
        value = self.parent.args[self.field_name]
        return value if self.index is None else value[self.index]

    def set(self, node: exp.Expression) -> None:
        self.parent.set(self.field_name, node, self.index)


class Outcome(enum.Enum):
    """What :func:`rewrite` should do after a callback leaves a node in place."""

    UNCHANGED = "unchanged"  # keep the node and descend into its children
    SKIP_SUBTREE = "skip_subtree"  # keep the node, do not visit its children


@dataclasses.dataclass(frozen=True)
class Rewritten:
    """Replace the current node with :attr:`node`.  The replacement is not visited."""

    node: exp.Expression


VisitResult = Union[Rewritten, Outcome]


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _arg_keys(node: exp.Expression) -> Iterator[str]:
    # Declared argument order follows clause order; anything set outside the schema comes last.
    yield from (key for key in node.arg_types if key in node.args)
    yield from (key for key in node.args if key not in node.arg_types)


def _iter_slots(node: exp.Expression, path: str = "") -> Generator[tuple[Slot, str], None, None]:
    """Yield ``(slot, path)`` for every child expression of *node*, validating each argument's value."""
    for key in _arg_keys(node):
        value = node.args[key]
        field_path = _join(path, key)
        if isinstance(value, exp.Expression):
            yield Slot(node, key), field_path
        elif isinstance(value, list):
            for i, item in enumerate(value):
                if isinstance(item, exp.Expression):
                    yield Slot(node, key, i), f"{field_path}[{i}]"
                elif not isinstance(item, _SCALAR_TYPES):
                    msg = f"list element of type {type(item).__name__} is not an expression"
                    raise TraversalError(msg, path=f"{field_path}[{i}]")
        elif value is not None and not isinstance(value, _SCALAR_TYPES):
            msg = f"argument holds a {type(value).__name__}, expected an expression"
            raise TraversalError(msg, path=field_path)


def _check_root(node: object) -> exp.Expression:
    if not isinstance(node, exp.Expression):
        msg = f"expected a sqlglot expression, got {type(node).__name__}"
        raise TraversalError(msg)
    return node


def walk(node: exp.Expression) -> Generator[tuple[str, exp.Expression], None, None]:
    """Depth-first pre-order traversal of an expression tree.

    Yields ``(field_name, node)`` tuples for every node encountered. The *field_name* is the argument key that led to
    the node (e.g. ``"where"``, ``"expressions"``), or an empty string for the root.

    Args:
        node: Any expression (a statement or a sub-expression).

    Yields:
        ``(field_name, node)`` tuples in depth-first pre-order.

    Raises:
        TraversalError: If the tree is malformed.

    Example:
        >>> from sqlbind import parse, walk
        >>> for field_name, node in walk(parse("SELECT 1 FROM t")):
        ...     if field_name:
        ...         print(f"{field_name}: {type(node).__name__}")
        expressions: Literal
        from: From
        this: Table
        this: Identifier
    """
    node = _check_root(node)
    seen = {id(node)}
    yield "", node
    stack = list(reversed(list(_iter_slots(node))))
    while stack:
        slot, path = stack.pop()
        child = slot.get()
        if id(child) in seen:
            msg = f"{type(child).__name__} node is reachable more than once"
            raise TraversalError(msg, path=path)
        seen.add(id(child))
        yield slot.field_name, child
        stack.extend(reversed(list(_iter_slots(child, path))))


def check_tree(node: exp.Expression) -> None:
    """Raise :class:`~sqlbind.TraversalError` if *node* is not a well-formed expression tree."""
    for _field_name, _node in walk(node):
        pass


def rewrite(node: exp.Expression, fn: Callable[[exp.Expression, Slot | None], VisitResult]) -> exp.Expression:
    """Depth-first pre-order traversal that lets *fn* replace nodes in place.

    *fn* receives each node together with its :class:`Slot` (``None`` for the root) and returns one of:

    * ``Rewritten(new_node)`` to store *new_node* in the parent's slot.  The replacement is not visited.
    * ``Outcome.UNCHANGED`` to keep the node and continue into its children.  Children are read after *fn* returns,
      so arguments *fn* changed on the node itself are what gets visited.
    * ``Outcome.SKIP_SUBTREE`` to keep the node and skip its children.

    Args:
        node: Root of the tree.
        fn: Per-node callback.

    Returns:
        The root, or its replacement when *fn* rewrote the root itself.

    Raises:
        TraversalError: If the tree is malformed.  Nodes visited before the fault keep their rewrites.
    """
    node = _check_root(node)
    seen: set[int] = set()
    stack: list[tuple[exp.Expression, Slot | None, str]] = [(node, None, "")]
    root = node
    while stack:
        current, slot, path = stack.pop()
        if id(current) in seen:
            msg = f"{type(current).__name__} node is reachable more than once"
            raise TraversalError(msg, path=path)
        seen.add(id(current))

        result = fn(current, slot)
        if isinstance(result, Rewritten):
            if slot is None:
                root = result.node
            else:
                slot.set(result.node)
            continue
        if result is Outcome.SKIP_SUBTREE:
            continue
        children = [(child_slot.get(), child_slot, child_path) for child_slot, child_path in _iter_slots(current, path)]
        stack.extend(reversed(children))
    return root


class Visitor:
    """Base class for expression-tree visitors.

    Subclass and override ``visit_<ClassName>`` methods (e.g. ``visit_Select``, ``visit_Column``) to handle specific
    sqlglot expression types. Unhandled types fall through to :meth:`generic_visit` which recurses into children.

    Call :meth:`visit` on a root node to start traversal::

        class TableCollector(Visitor):
            def __init__(self):
                self.tables = []

            def visit_Table(self, node):
                self.tables.append(node.name)


        collector = TableCollector()
        collector.visit(parse("SELECT * FROM a JOIN b ON a.id = b.id"))
    """

    def visit(self, node: exp.Expression) -> None:
        """Dispatch *node* to ``visit_<ClassName>`` or :meth:`generic_visit`."""
        handler = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        handler(node)

    def generic_visit(self, node: exp.Expression) -> None:
        """Visit all child nodes of *node*.

        Call ``super().generic_visit(node)`` from a ``visit_*`` handler to continue recursion into a node's children
        after custom processing.
        """
        for slot, _path in _iter_slots(node):
            self.visit(slot.get())
