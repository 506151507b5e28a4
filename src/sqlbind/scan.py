"""SQL scanning/tokenization via sqlglot."""

from __future__ import annotations

from sqlglot.errors import TokenError
from sqlglot.tokens import Token, TokenType

from sqlbind.dialect import DIALECT
from sqlbind.errors import ParseError

__all__ = ["Token", "TokenType", "scan"]


def scan(sql: str) -> list[Token]:
    """Tokenize a SQL string into a sequence of sqlglot tokens.

    Uses the tokenizer of the sqlbind dialect (MySQL plus ``::name`` list placeholders).  Each token carries its
    ``token_type``, ``text``, ``line``/``col`` and 0-based inclusive ``start``/``end`` character offsets.  Comments are
    attached to the neighbouring token rather than returned.

    Args:
        sql: A SQL string to tokenize.

    Returns:
        The tokens in source order.  Empty input yields an empty list.

    Raises:
        ParseError: If the input contains a scan error (e.g., an unterminated string literal).

    Example:
        >>> [token.token_type.name for token in scan("SELECT a FROM t WHERE b IN ::v1")]
        ['SELECT', 'VAR', 'FROM', 'VAR', 'WHERE', 'VAR', 'IN', 'DCOLON', 'VAR']
    """
    try:
        return DIALECT.tokenize(sql)
    except TokenError as exc:
        raise ParseError(str(exc)) from exc
