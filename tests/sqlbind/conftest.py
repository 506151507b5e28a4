from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from sqlbind import parse

if TYPE_CHECKING:
    from sqlglot import exp

# -- Statement fixtures (function scope: normalization mutates trees in place) --


@pytest.fixture
def select1_stmt() -> exp.Expression:
    return parse("SELECT 1")


@pytest.fixture
def users_stmt() -> exp.Expression:
    return parse("SELECT id, name FROM users WHERE id = 42 AND name = 'alice'")


@pytest.fixture
def join_stmt() -> exp.Expression:
    return parse("SELECT o.id FROM orders AS o JOIN customers AS c ON o.customer_id = c.id WHERE c.region = 'eu'")
