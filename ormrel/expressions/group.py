"""Where-clause lists and parenthesized predicate groups."""

from __future__ import annotations
from typing import Any, Iterable

from pydantic import BaseModel

from ._bases import Expression


class Clause(BaseModel):
    """One predicate of a WHERE list, joined to the previous one with ``boolean``.

    ``stage`` orders clauses contributed by different layers of query
    composition; lower stages render first.
    """

    model_config = {"arbitrary_types_allowed": True}

    boolean: str = "AND"
    expression: Expression
    stage: int = 0


def render_clauses(clauses: Iterable[Clause]) -> tuple[str, tuple[Any, ...]]:
    """Render ``a = ? AND b = ? OR c IS NULL`` and its bound values."""
    parts: list[str] = []
    values: tuple[Any, ...] = ()
    for clause in clauses:
        if parts:
            parts.append(clause.boolean)
        parts.append(clause.expression.sql)
        values += clause.expression.values
    return " ".join(parts), values


class GroupExpression(Expression):
    """Parenthesized list of clauses, as produced by a grouped ``where`` callback."""

    clauses: list[Clause]

    @classmethod
    def of(cls, expression: Expression) -> GroupExpression:
        return cls(clauses=[Clause(expression=expression)])

    @property
    def sql(self) -> str:
        return "(" + render_clauses(self.clauses)[0] + ")"

    @property
    def values(self):
        return render_clauses(self.clauses)[1]
