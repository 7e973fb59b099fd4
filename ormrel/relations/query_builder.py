"""Query builder bound to a relation.

The relation contributes the statement shape (joins and the owner constraint)
at compile time, so the builder itself only records what the caller adds. The
same builder serves three modes:

- ``single``: related rows of one owner (``user.related("posts")``),
- ``eager``: related rows of many owners at once, for preloading,
- ``exists``: a sub-query correlated to an outer query, for ``has``/``where_has``.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import Field

from ..errors import PaginationError
from ..expressions import ColumnExpression, Expression
from ..query.builder import ModelQueryBuilder
from .base import RelationKind


class RelationQueryMode(str, enum.Enum):
    SINGLE = "single"
    EAGER = "eager"
    EXISTS = "exists"


_PIVOT_KINDS = (RelationKind.MANY_TO_MANY, RelationKind.MORPH_TO_MANY)


class RelationQueryBuilder(ModelQueryBuilder):
    """Immutable query over the related rows of a relation."""

    relation: Any
    mode: RelationQueryMode = RelationQueryMode.SINGLE
    owner_values: list[Any] = Field(default_factory=list)
    outer_reference: Optional[str] = None
    """Table or alias of the outer query, in ``exists`` mode."""
    bridge_alias: Optional[str] = None
    """Alias of the through/pivot table, when it collides with an outer table."""
    pivot_only: bool = False
    pivot_columns: list[str] = Field(default_factory=list)

    @property
    def is_eager(self) -> bool:
        return self.mode == RelationQueryMode.EAGER

    def qualify(self, column: str | Expression) -> Expression:
        if self.pivot_only and isinstance(column, str) and "." not in column:
            return ColumnExpression(table=self.relation.bridge_table, name=column)
        return super().qualify(column)

    def qualify_bridge(self, column: str | Expression) -> Expression:
        """Column of the through/pivot table."""
        if isinstance(column, Expression):
            return column
        table = self.bridge_alias or self.relation.bridge_table
        if table is None:
            raise ValueError(f'Relationship "{self.relation.name}" has no pivot table')
        return ColumnExpression(table=table, name=column)

    # pivot predicates

    def where_pivot(self, *args: Any, **kwargs: Any) -> RelationQueryBuilder:
        """``where`` against pivot columns (``where_pivot("role", "admin")``)."""
        return self._where("AND", args, kwargs, qualify=self.qualify_bridge)

    def or_where_pivot(self, *args: Any, **kwargs: Any) -> RelationQueryBuilder:
        return self._where("OR", args, kwargs, qualify=self.qualify_bridge)

    def where_not_pivot(self, *args: Any, **kwargs: Any) -> RelationQueryBuilder:
        return self._where("AND", args, kwargs, negate=True, qualify=self.qualify_bridge)

    def or_where_not_pivot(self, *args: Any, **kwargs: Any) -> RelationQueryBuilder:
        return self._where("OR", args, kwargs, negate=True, qualify=self.qualify_bridge)

    def where_in_pivot(self, column: str, values) -> RelationQueryBuilder:
        return self._where_in(column, values, "AND", False, qualify=self.qualify_bridge)

    def or_where_in_pivot(self, column: str, values) -> RelationQueryBuilder:
        return self._where_in(column, values, "OR", False, qualify=self.qualify_bridge)

    def where_not_in_pivot(self, column: str, values) -> RelationQueryBuilder:
        return self._where_in(column, values, "AND", True, qualify=self.qualify_bridge)

    def or_where_not_in_pivot(self, column: str, values) -> RelationQueryBuilder:
        return self._where_in(column, values, "OR", True, qualify=self.qualify_bridge)

    def select_pivot(self, *names: str) -> RelationQueryBuilder:
        """Also select these pivot columns (as ``pivot_<name>`` row extras)."""
        if self.relation.kind not in _PIVOT_KINDS:
            raise ValueError(f'Relationship "{self.relation.name}" has no pivot table')
        return self.clone_with(pivot_columns=self.pivot_columns + list(names))

    # compilation

    def _targets_pivot(self, action: str) -> bool:
        if self.pivot_only:
            return True
        return action in ("update", "delete") and self.relation.kind in _PIVOT_KINDS

    def _applies_global_scopes(self, action: str) -> bool:
        return not self._targets_pivot(action)

    def _shape(self, action: str):
        return self.relation.shape(self, action)

    def _extra_columns(self) -> list[Expression]:
        if self.mode == RelationQueryMode.EXISTS:
            return []
        columns: list[Expression] = []
        if self.is_eager and self.columns:
            # user selections must still carry the keys matching rows to owners
            selected = {column.sql for column in self.columns}
            columns += [c for c in self.relation.relation_keys(self) if c.sql not in selected]
        return columns + self.relation.bridge_columns(self)

    # execution

    def all(self) -> list:
        if self.pivot_only:
            return self._execute(self.to_statement())
        return super().all()

    def _update_data(self, values: dict[str, Any]) -> dict[str, Any]:
        if self._targets_pivot("update"):
            return dict(values)
        return super()._update_data(values)

    def delete(self) -> int:
        if self._targets_pivot("delete"):
            return self.force_delete()
        return super().delete()

    def _check_paginate(self) -> None:
        relation = self.relation
        if self.is_eager:
            raise PaginationError(f'Cannot paginate relationship "{relation.name}" during preload')
        if not relation.is_plural:
            raise PaginationError(
                f'Cannot paginate a {relation.kind.value} relationship "({relation.name})"'
            )
