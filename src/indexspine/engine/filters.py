"""
Predicate expressions for store lookups.

``Expression`` is a small tree of ``(left, operator, right)`` nodes that
compiles to a parameterized ``WHERE`` fragment.  Leaves name a column on
the left and carry a value on the right; ``AND``/``OR`` nodes carry an
expression on each side.  Callers pass expressions as search filters and
the engine chains its own predicate onto them with :meth:`prepend_and`.

Examples:
    >>> e = Expression("term", Operator.IN, ["fox", "quick"])
    >>> e = e.prepend_and(Expression("refcount", Operator.GREATER_THAN, 1))
    >>> e.compile()
    ('(refcount > ?) AND (term IN (?, ?))', (1, 'fox', 'quick'))

Column names cannot be bound as parameters, so they are checked against
an identifier pattern; anything else raises :class:`ValidationError`.

Tags:
    predicate, filter, expression, sql, index-spine
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from indexspine.core.dialect import Dialect, SQLiteDialect
from indexspine.core.errors import ValidationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Operator(str, Enum):
    """Supported predicate operators."""

    EQUALS = "="
    NOT_EQUALS = "<>"
    IN = "IN"
    NOT_IN = "NOT IN"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    LIKE = "LIKE"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"
    AND = "AND"
    OR = "OR"


_COMBINATORS = (Operator.AND, Operator.OR)
_SET_OPERATORS = (Operator.IN, Operator.NOT_IN)
_UNARY_OPERATORS = (Operator.IS_NULL, Operator.IS_NOT_NULL)


@dataclass(frozen=True)
class Expression:
    """Immutable predicate node."""

    left: str | Expression
    operator: Operator
    right: Any = None

    def __post_init__(self) -> None:
        if self.operator in _COMBINATORS:
            if not isinstance(self.left, Expression) or not isinstance(self.right, Expression):
                raise ValidationError(f"{self.operator.value} requires an expression on both sides")
            return
        if not isinstance(self.left, str) or not _IDENTIFIER.match(self.left):
            raise ValidationError("Invalid column name in filter", field="left", value=self.left)
        if self.operator in _SET_OPERATORS:
            if isinstance(self.right, (str, bytes)) or not isinstance(self.right, Iterable):
                raise ValidationError(
                    f"{self.operator.value} requires a collection of values",
                    field="right",
                    value=self.right,
                )
            object.__setattr__(self, "right", tuple(self.right))

    # -- Combinators -------------------------------------------------------

    def and_(self, other: Expression) -> Expression:
        return Expression(self, Operator.AND, other)

    def or_(self, other: Expression) -> Expression:
        return Expression(self, Operator.OR, other)

    def prepend_and(self, other: Expression) -> Expression:
        """``other AND self``: chain a caller filter in front of this predicate."""
        return Expression(other, Operator.AND, self)

    def prepend_or(self, other: Expression) -> Expression:
        return Expression(other, Operator.OR, self)

    # -- Compilation -------------------------------------------------------

    def compile(self, dialect: Dialect | None = None) -> tuple[str, tuple]:
        """Render to ``(sql_fragment, params)``."""
        dialect = dialect or SQLiteDialect()
        params: list[Any] = []
        sql = self._render(dialect, params)
        return sql, tuple(params)

    def _render(self, dialect: Dialect, params: list[Any]) -> str:
        op = self.operator
        if op in _COMBINATORS:
            left = self.left._render(dialect, params)
            right = self.right._render(dialect, params)
            return f"({left}) {op.value} ({right})"

        column = self.left
        if op in _UNARY_OPERATORS:
            return f"{column} {op.value}"

        if op in _SET_OPERATORS:
            values = self.right
            if not values:
                # empty IN matches nothing, empty NOT IN matches everything
                return "1 = 0" if op is Operator.IN else "1 = 1"
            start = len(params)
            params.extend(values)
            ph = ", ".join(dialect.placeholder(start + i) for i in range(len(values)))
            return f"{column} {op.value} ({ph})"

        if self.right is None:
            return f"{column} IS NULL" if op is Operator.EQUALS else f"{column} IS NOT NULL"

        params.append(self.right)
        return f"{column} {op.value} {dialect.placeholder(len(params) - 1)}"

    def columns(self) -> set[str]:
        """Column names referenced anywhere in the tree."""
        if self.operator in _COMBINATORS:
            return self.left.columns() | self.right.columns()
        return {self.left}


def combine(*expressions: Expression | None) -> Expression | None:
    """AND together the non-``None`` expressions, left to right."""
    result: Expression | None = None
    for expression in expressions:
        if expression is None:
            continue
        result = expression if result is None else result.and_(expression)
    return result


__all__ = [
    "Expression",
    "Operator",
    "combine",
]
