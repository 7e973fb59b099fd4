"""Immutable SQL statement builder.

A :class:`Statement` describes one SELECT (and the UPDATE/DELETE sharing its
WHERE clause) as a tree of expressions. Every builder method returns a new
Statement; ``sql`` and ``values`` serialize it with ``?`` placeholders, which
the connection adapts to the driver's parameter style.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from .expressions import (
    Clause,
    Expression,
    FunctionExpression,
    OrderExpression,
    TableExpression,
    render_clauses,
)


class Join(BaseModel):
    """``INNER JOIN table ON condition`` (or ``LEFT JOIN``)."""

    model_config = {"arbitrary_types_allowed": True}

    kind: str = "INNER"
    table: TableExpression
    on: Expression

    @property
    def sql(self) -> str:
        return f"{self.kind} JOIN {self.table.sql} ON {self.on.sql}"

    @property
    def values(self) -> tuple[Any, ...]:
        return self.on.values


class Statement(BaseModel):
    """Immutable SELECT statement; also compiles UPDATE, DELETE and COUNT variants."""

    model_config = {"arbitrary_types_allowed": True}

    table: TableExpression
    columns: list[Expression] = Field(default_factory=list)
    joins: list[Join] = Field(default_factory=list)
    clauses: list[Clause] = Field(default_factory=list)
    group_by_expressions: list[Expression] = Field(default_factory=list)
    order_by_expressions: list[OrderExpression] = Field(default_factory=list)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    dialect: Any = None
    """Dialect used to render LIMIT/OFFSET; standard syntax when ``None``."""

    @classmethod
    def from_table(cls, name: str, alias: str | None = None, **kwargs) -> Statement:
        return cls(table=TableExpression(name=name, alias=alias), **kwargs)

    def clone_with(self, **changes) -> Statement:
        """Return a copy of this statement with the given fields replaced."""
        return self.model_copy(update=changes)

    def select(self, *columns: Expression) -> Statement:
        return self.clone_with(columns=self.columns + list(columns))

    def join(self, table: TableExpression, on: Expression, kind: str = "INNER") -> Statement:
        return self.clone_with(joins=self.joins + [Join(kind=kind, table=table, on=on)])

    def where(self, expression: Expression, boolean: str = "AND", stage: int = 0) -> Statement:
        clause = Clause(boolean=boolean, expression=expression, stage=stage)
        return self.clone_with(clauses=self.clauses + [clause])

    def extend_clauses(self, clauses: Iterable[Clause]) -> Statement:
        return self.clone_with(clauses=self.clauses + list(clauses))

    def group_by(self, *expressions: Expression) -> Statement:
        return self.clone_with(group_by_expressions=self.group_by_expressions + list(expressions))

    def order_by(self, *orders: OrderExpression) -> Statement:
        return self.clone_with(order_by_expressions=self.order_by_expressions + list(orders))

    def limit(self, limit: Optional[int]) -> Statement:
        return self.clone_with(limit_value=limit)

    def offset(self, offset: Optional[int]) -> Statement:
        return self.clone_with(offset_value=offset)

    # rendering

    @property
    def sql_where(self) -> str:
        if not self.clauses:
            return ""
        return " WHERE " + render_clauses(self.clauses)[0]

    @property
    def where_values(self) -> tuple[Any, ...]:
        return render_clauses(self.clauses)[1]

    @property
    def sql_limit(self) -> str:
        if self.limit_value is None and self.offset_value is None:
            return ""
        if self.dialect is not None:
            return self.dialect.limit_clause(self.limit_value, self.offset_value)
        sql = ""
        if self.limit_value is not None:
            sql += f" LIMIT {int(self.limit_value)}"
        if self.offset_value is not None:
            sql += f" OFFSET {int(self.offset_value)}"
        return sql

    @property
    def sql(self) -> str:
        """The SELECT statement, with ``?`` placeholders."""
        columns = ", ".join(column.sql for column in self.columns) or "*"
        sql = f"SELECT {columns} FROM {self.table.sql}"
        for join in self.joins:
            sql += " " + join.sql
        sql += self.sql_where
        if self.group_by_expressions:
            sql += " GROUP BY " + ", ".join(e.sql for e in self.group_by_expressions)
        if self.order_by_expressions:
            sql += " ORDER BY " + ", ".join(o.sql for o in self.order_by_expressions)
        sql += self.sql_limit
        return sql

    @property
    def values(self) -> tuple[Any, ...]:
        """Bound values for ``sql``, in placeholder order."""
        values: tuple[Any, ...] = ()
        for column in self.columns:
            values += column.values
        for join in self.joins:
            values += join.values
        values += self.where_values
        for expression in self.group_by_expressions:
            values += expression.values
        for order in self.order_by_expressions:
            values += order.values
        return values

    def count_statement(self, alias: Optional[str] = "total") -> Statement:
        """Same FROM/JOIN/WHERE, selecting ``COUNT(*) AS total`` and nothing else."""
        count = FunctionExpression.count()
        return self.clone_with(
            columns=[count.label(alias) if alias else count],
            order_by_expressions=[],
            limit_value=None,
            offset_value=None,
        )

    def compile_update(self, data: dict[str, Any]) -> tuple[str, tuple[Any, ...]]:
        """``UPDATE table SET a = ?, ... WHERE ...`` for physical column names in ``data``."""
        if self.joins:
            raise ValueError("Cannot compile an UPDATE for a statement with joins")
        assignments = []
        values: tuple[Any, ...] = ()
        for name, value in data.items():
            if isinstance(value, Expression):
                assignments.append(f"{name} = {value.sql}")
                values += value.values
            else:
                assignments.append(f"{name} = ?")
                values += (value,)
        sql = f"UPDATE {self.table.name} SET " + ", ".join(assignments) + self.sql_where
        return sql, values + self.where_values

    def compile_delete(self) -> tuple[str, tuple[Any, ...]]:
        if self.joins:
            raise ValueError("Cannot compile a DELETE for a statement with joins")
        return f"DELETE FROM {self.table.name}{self.sql_where}", self.where_values


def compile_insert(table: str, rows: list[dict[str, Any]],
                   returning: str | None = None) -> tuple[str, tuple[Any, ...]]:
    """``INSERT INTO table (a, b) VALUES (?, ?), (?, ?)``.

    All rows must carry the same keys, in the same order as the first row.
    """
    if not rows:
        raise ValueError("Cannot compile an INSERT without rows")
    names = list(rows[0])
    if not names:
        sql = f"INSERT INTO {table} DEFAULT VALUES"
        values: tuple[Any, ...] = ()
    else:
        for row in rows[1:]:
            if list(row) != names:
                raise ValueError("All inserted rows must have the same columns")
        placeholders = "(" + ", ".join("?" for _ in names) + ")"
        sql = (f"INSERT INTO {table} (" + ", ".join(names) + ") VALUES "
               + ", ".join(placeholders for _ in rows))
        values = tuple(row[name] for row in rows for name in names)
    if returning:
        sql += f" RETURNING {returning}"
    return sql, values
