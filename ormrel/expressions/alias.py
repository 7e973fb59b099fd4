"""Aliased select-list expression."""

from ._bases import Expression


class AliasExpression(Expression):
    """``expression AS alias``"""

    expression: Expression
    alias: str

    @property
    def sql(self) -> str:
        return f"{self.expression.sql} AS {self.alias}"

    @property
    def values(self):
        return self.expression.values
