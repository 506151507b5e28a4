"""The SQL dialect sqlbind parses and renders: MySQL plus Vitess list placeholders.

Trees are plain :mod:`sqlglot.expressions` nodes.  The only addition is :class:`ListArg`, the ``::name`` placeholder
that stands for a whole ``IN`` tuple.  Scalar placeholders are sqlglot's own :class:`~sqlglot.expressions.Placeholder`
(``:name``).
"""

from __future__ import annotations

from typing import Final

from sqlglot import exp
from sqlglot.dialects.mysql import MySQL
from sqlglot.tokens import TokenType


class ListArg(exp.Expression):
    """A ``::name`` list placeholder bound to a ``TUPLE`` bind variable."""

    arg_types = {"this": True}


def _listarg_sql(self: MySQL.Generator, expression: ListArg) -> str:
    return f"::{expression.name}"


class SqlBind(MySQL):
    """MySQL with ``::name`` accepted wherever a ``:name`` placeholder is."""

    class Tokenizer(MySQL.Tokenizer):
        KEYWORDS = {**MySQL.Tokenizer.KEYWORDS, "::": TokenType.DCOLON}

    class Parser(MySQL.Parser):
        PLACEHOLDER_PARSERS = {
            **MySQL.Parser.PLACEHOLDER_PARSERS,
            TokenType.DCOLON: lambda self: (
                self.expression(ListArg, this=self._prev.text) if self._match_set(self.ID_VAR_TOKENS) else None
            ),
        }

    class Generator(MySQL.Generator):
        TRANSFORMS = {**MySQL.Generator.TRANSFORMS, ListArg: _listarg_sql}


DIALECT: Final = SqlBind()

# Root node types accepted by parse() and normalize().
STATEMENT_TYPES: Final = (exp.Query, exp.Insert, exp.Update, exp.Delete)
