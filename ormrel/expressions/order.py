"""ORDER BY expression."""

from ._bases import Expression


class OrderExpression(Expression):
    """ORDER BY term: one expression and ascending or descending."""

    desc: bool = False
    expression: Expression

    @property
    def sql(self) -> str:
        """Expression with ``DESC`` or ``ASC`` suffix."""
        return f"{self.expression.sql} {'DESC' if self.desc else 'ASC'}"

    @property
    def values(self):
        return self.expression.values
