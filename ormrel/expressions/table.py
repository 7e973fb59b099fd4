"""Table expression for FROM/JOIN references."""

from __future__ import annotations
from typing import Optional

from ._bases import Expression


class TableExpression(Expression):
    """Reference to a physical table, optionally aliased.

    Columns of the table are qualified with ``reference``: the alias when one
    is set, else the table name.
    """

    name: str
    alias: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.alias or self.name

    @property
    def sql(self) -> str:
        if self.alias and self.alias != self.name:
            return f"{self.name} AS {self.alias}"
        return self.name

    def column(self, name: str):
        """Column of this table, qualified with its reference."""
        from .column import ColumnExpression
        return ColumnExpression(table=self.reference, name=name)

    def __getitem__(self, name: str):
        return self.column(name)

    @property
    def all_columns(self):
        """``reference.*``"""
        return self.column("*")
