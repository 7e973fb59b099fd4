"""N-ary operator expression."""

from typing import ClassVar

from ._bases import ArgumentedExpression


class NaryOperatorExpression(ArgumentedExpression):
    """N-argument operator (e.g. ``=``, ``AND``, ``LIKE``).

    Comparisons render bare (``a = ?``); logical and arithmetic operators are
    parenthesized (``(a AND b)``).
    """

    COMPARISON_SYMBOLS: ClassVar[frozenset[str]] = frozenset(
        ("=", "!=", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "IS", "IS NOT")
    )

    @property
    def sql(self) -> str:
        if not self.symbol:
            raise ValueError("NaryOperatorExpression must have a symbol")
        if not self.arguments:
            raise ValueError("NaryOperatorExpression must have at least one argument")
        parts = tuple(map(self._argument_to_sql, self.arguments))
        joined = (" " + self.symbol + " ").join(parts)
        if self.symbol in self.COMPARISON_SYMBOLS:
            return joined
        return "(" + joined + ")"
