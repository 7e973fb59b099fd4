"""Column expression for referencing a single column."""

from typing import Optional

from ._bases import Expression


class ColumnExpression(Expression):
    """Reference to a single column, qualified (``users.id``) or bare (``id``).

    Has no placeholders, so ``values`` is ``()``.
    """

    table: Optional[str] = None
    """Table name or alias qualifying the column; ``None`` for a bare column."""
    name: str

    @classmethod
    def parse(cls, reference: str) -> "ColumnExpression":
        """``"users.id"`` -> ColumnExpression(table="users", name="id")."""
        if "." in reference:
            table, name = reference.rsplit(".", 1)
            return cls(table=table, name=name)
        return cls(name=reference)

    @property
    def sql(self) -> str:
        if self.table:
            return f"{self.table}.{self.name}"
        return self.name

    @property
    def desc(self):
        """Order by this column descending (for use in ``order_by(...)``)."""
        from .order import OrderExpression
        return OrderExpression(expression=self, desc=True)

    @property
    def asc(self):
        from .order import OrderExpression
        return OrderExpression(expression=self)
