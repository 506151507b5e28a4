"""SQL query parsing via sqlglot.

Statements are parsed with the sqlbind dialect into :mod:`sqlglot.expressions` trees.  Literal values keep their raw
text so that :func:`sqlbind.normalize` can turn them into typed bind variables without loss.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlglot import exp
from sqlglot.errors import ParseError as SqlglotParseError
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlbind.dialect import DIALECT, STATEMENT_TYPES
from sqlbind.errors import ParseError

if TYPE_CHECKING:
    from sqlglot.tokens import Token


def _convert_error(exc: SqlglotParseError) -> ParseError:
    if not exc.errors:
        return ParseError(str(exc))
    error = exc.errors[0]
    description = error.get("description") or str(exc)
    highlight = error.get("highlight") or ""
    # The parser gets a context window as long as the input, so start_context is the whole prefix.
    cursorpos = len(error.get("start_context") or "") + 1
    message = f'{description} at or near "{highlight}"' if highlight else description
    return ParseError(message, cursorpos=cursorpos)


def _second_statement(tokens: list[Token]) -> Token | None:
    for i, token in enumerate(tokens[:-1]):
        if token.token_type == TokenType.SEMICOLON and tokens[i + 1].token_type != TokenType.SEMICOLON:
            return tokens[i + 1]
    return None


def _fold_negative_numbers(tree: exp.Expression) -> None:
    # sqlglot parses -5 as Neg(5); keep a signed number as one literal.  Innermost first so "- -5" folds fully.
    for neg in reversed(list(tree.find_all(exp.Neg, bfs=False))):
        operand = neg.this
        if isinstance(operand, exp.Literal) and not operand.is_string:
            text = operand.this
            folded = text[1:] if text.startswith("-") else f"-{text}"
            neg.replace(exp.Literal(this=folded, is_string=False))


def parse(sql: str) -> exp.Expression:
    """Parse a single SQL statement into a sqlglot expression tree.

    Supported statements are queries (``SELECT`` and set operations such as ``UNION``), ``INSERT``, ``UPDATE`` and
    ``DELETE``.  A trailing semicolon is allowed.  Signed numeric literals such as ``-5`` are kept as one
    :class:`~sqlglot.expressions.Literal`.

    Args:
        sql: A SQL statement.

    Returns:
        The root expression, e.g. :class:`~sqlglot.expressions.Select`.

    Raises:
        ParseError: If the text is not exactly one supported statement.

    Example:
        >>> tree = parse("SELECT id, name FROM users WHERE active = true")
        >>> type(tree).__name__
        'Select'
        >>> [column.name for column in tree.expressions]
        ['id', 'name']
    """
    try:
        tokens = DIALECT.tokenize(sql)
        parser = DIALECT.parser(error_message_context=len(sql) + 1)
        statements = [stmt for stmt in parser.parse(tokens, sql) if stmt is not None]
    except TokenError as exc:
        raise ParseError(str(exc)) from exc
    except SqlglotParseError as exc:
        raise _convert_error(exc) from exc
    except RecursionError:
        raise ParseError("statement is nested too deeply") from None

    if not statements:
        raise ParseError("syntax error at end of input", cursorpos=len(sql) + 1)
    if len(statements) > 1:
        token = _second_statement(tokens)
        cursorpos = token.start + 1 if token is not None else 0
        text = token.text if token is not None else ""
        raise ParseError(f'syntax error at or near "{text}"', cursorpos=cursorpos)
    stmt = statements[0]
    if not isinstance(stmt, STATEMENT_TYPES):
        raise ParseError(f"unsupported statement: {type(stmt).__name__}", cursorpos=tokens[0].start + 1)
    _fold_negative_numbers(stmt)
    return stmt
