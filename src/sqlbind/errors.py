"""Error types for sqlbind.

Literal values that cannot be parameterized are never errors: they are simply left in place. Exceptions are reserved
for invalid SQL text (:class:`ParseError`) and for trees that violate the node model (:class:`TraversalError`).
"""

from __future__ import annotations


class SqlBindError(Exception):
    """Base class for every error raised by sqlbind."""


class ParseError(SqlBindError):
    """Structured error raised when :func:`~sqlbind.scan` or :func:`~sqlbind.parse` rejects SQL text.

    ``cursorpos`` is a **1-based character offset** into the original SQL string pointing at the token where the error
    was detected.  When it is ``0`` the position is unknown.  Convert it to a 0-based Python index with
    ``e.cursorpos - 1`` when slicing.

    Attributes:
        message: Human-readable error description.
        cursorpos: 1-based offset in the SQL string where the error was detected (``0`` when unavailable).

    Examples:
        Use ``cursorpos`` to highlight the error location:

        >>> from sqlbind import parse, ParseError
        >>> sql = "SELECT (1 FROM users"
        >>> try:
        ...     parse(sql)
        ... except ParseError as e:
        ...     idx = max(e.cursorpos - 1, 0)
        ...     print(sql)
        ...     print(" " * idx + "^")
        ...     print(e.message)
        SELECT (1 FROM users
                  ^
        Expecting ) at or near "FROM"
    """

    def __init__(self, message: str, *, cursorpos: int = 0) -> None:
        """Create a ParseError.

        Args:
            message: Human-readable error description.
            cursorpos: 1-based position in the SQL string where the error was detected.
        """
        super().__init__(message)
        self.message = message
        self.cursorpos = cursorpos


class TraversalError(SqlBindError):
    """Raised when a tree handed to the traversal facility is malformed.

    A malformed tree is a caller contract violation: a root that is not a sqlglot expression, an argument
    holding something other than an expression, a scalar, ``None`` or a list of those, or a node reachable through two
    different slots.  Callers of :func:`~sqlbind.normalize` can use this exception to tell an aborted traversal apart
    from a statement that was normalized where possible.

    When raised from :func:`~sqlbind.normalize` the statement may already be partially rewritten.

    Attributes:
        message: Human-readable error description.
        path: Dotted slot path from the root to the offending value (e.g. ``"where.this"``), or ``""`` for the root.
    """

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(f"{message} (at {path or '<root>'})")
        self.message = message
        self.path = path
