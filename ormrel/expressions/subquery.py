"""Expressions embedding another statement: sub-queries, EXISTS and IN."""

from typing import Any

from ._bases import Expression


class SubqueryExpression(Expression):
    """A statement used as a value: ``(SELECT ...)``."""

    statement: Any
    """Anything exposing ``sql`` and ``values`` (a Statement)."""

    @property
    def sql(self) -> str:
        return f"({self.statement.sql})"

    @property
    def values(self):
        return tuple(self.statement.values)


class ExistsExpression(Expression):
    """``EXISTS (SELECT ...)`` or ``NOT EXISTS (SELECT ...)``."""

    statement: Any
    negated: bool = False

    def negate(self):
        return self.model_copy(update={"negated": not self.negated})

    @property
    def sql(self) -> str:
        keyword = "NOT EXISTS" if self.negated else "EXISTS"
        return f"{keyword} ({self.statement.sql})"

    @property
    def values(self):
        return tuple(self.statement.values)


class InExpression(Expression):
    """``expr IN (?, ?)`` over literal options, or ``expr IN (SELECT ...)``.

    An empty option list renders as an always-false (or, negated, always-true)
    predicate.
    """

    expression: Expression
    options: Any
    negated: bool = False

    def negate(self):
        return self.model_copy(update={"negated": not self.negated})

    @property
    def _is_subquery(self) -> bool:
        return hasattr(self.options, "sql") and hasattr(self.options, "values")

    @property
    def sql(self) -> str:
        keyword = "NOT IN" if self.negated else "IN"
        if self._is_subquery:
            return f"{self.expression.sql} {keyword} ({self.options.sql})"
        options = list(self.options)
        if not options:
            return "1 = 1" if self.negated else "1 = 0"
        placeholders = ", ".join(
            option.sql if isinstance(option, Expression) else "?"
            for option in options
        )
        return f"{self.expression.sql} {keyword} ({placeholders})"

    @property
    def values(self):
        if self._is_subquery:
            return self.expression.values + tuple(self.options.values)
        options = list(self.options)
        if not options:
            return ()
        result = self.expression.values
        for option in options:
            result += option.values if isinstance(option, Expression) else (option,)
        return result
