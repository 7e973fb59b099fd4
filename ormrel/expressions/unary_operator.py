"""Single-argument operators: ``NOT (...)``, ``x IS NULL``, ``x IS NOT NULL``."""

from ._bases import ArgumentedExpression

_NULL_CHECKS = {"IS NULL": "IS NOT NULL", "IS NOT NULL": "IS NULL"}


class UnaryOperatorExpression(ArgumentedExpression):
    """Prefix operator, or postfix when ``postfix`` is set."""

    postfix: bool = False

    @property
    def sql(self) -> str:
        argument = self._argument_to_sql(self.arguments[0])
        if self.postfix:
            return f"{argument} {self.symbol}"
        return f"{self.symbol} {argument}"

    def negate(self):
        """Null checks swap to their complement and ``NOT (x)`` unwraps to ``x``."""
        if self.postfix and self.symbol in _NULL_CHECKS:
            return self.model_copy(update={"symbol": _NULL_CHECKS[self.symbol]})
        if not self.postfix and self.symbol == "NOT":
            from .group import GroupExpression
            inner = self.arguments[0]
            if isinstance(inner, GroupExpression) and len(inner.clauses) == 1:
                return inner.clauses[0].expression
            return inner
        return super().negate()
