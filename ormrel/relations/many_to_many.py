"""manyToMany: owners and related rows linked through a pivot table.

``User.skills``::

    SELECT skills.*, skill_user.user_id AS pivot_user_id, skill_user.skill_id AS pivot_skill_id
    FROM skills INNER JOIN skill_user ON skills.id = skill_user.skill_id
    WHERE skill_user.user_id = ?

UPDATE and DELETE issued through the relation, and pivot-only queries, act on
the pivot table alone.
"""

from __future__ import annotations

from typing import Any

from ..expressions import Expression, NaryOperatorExpression, TableExpression
from ..statement import Statement
from .base import Relation, RelationKind, ResolvedKeys


class ManyToMany(Relation):
    kind = RelationKind.MANY_TO_MANY

    @property
    def bridge_table(self) -> str:
        return self.keys.pivot_table

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        return ResolvedKeys(**self._resolve_pivot_keys(resolver))

    def _resolve_pivot_keys(self, resolver) -> dict[str, Any]:
        options = self.options
        owner = resolver.owner
        related = resolver.descriptor(self.related_model)
        local_key = options.local_key or owner.primary_key
        local_key_column = resolver.require(self.model, local_key)
        related_key = options.related_key or related.primary_key
        related_key_column = resolver.require(self.related_model, related_key)
        naming = resolver.naming
        return dict(
            local_key=local_key,
            local_key_column=local_key_column,
            related_key=related_key,
            related_key_column=related_key_column,
            pivot_table=options.pivot_table or naming.pivot_table(owner.table, related.table),
            pivot_foreign_key=(options.pivot_foreign_key
                               or naming.pivot_foreign_key(owner.table, owner.primary_key)),
            pivot_related_foreign_key=(options.pivot_related_foreign_key
                                       or naming.pivot_foreign_key(related.table, related.primary_key)),
            pivot_columns=tuple(options.pivot_columns),
        )

    def pivot_alias(self, column: str) -> str:
        return f"pivot_{column}"

    def bridge_value(self, related_row):
        return self.parse_owner_key(related_row.extras.get(self.pivot_alias(self.keys.pivot_foreign_key)))

    def pivot_table_expression(self, builder) -> TableExpression:
        return TableExpression(name=self.keys.pivot_table, alias=builder.bridge_alias)

    def pivot_constraints(self, builder, pivot: TableExpression) -> list[Expression]:
        """Predicates on the pivot table other than the owner constraint."""
        return []

    def shape(self, builder, action: str):
        keys = self.keys
        if builder.pivot_only or action in ("update", "delete"):
            pivot = TableExpression(name=keys.pivot_table)
            statement = Statement(table=pivot)
        else:
            pivot = self.pivot_table_expression(builder)
            related = builder.table
            statement = builder.base_statement().join(
                pivot,
                NaryOperatorExpression(symbol="=", arguments=(
                    related.column(keys.related_key_column),
                    pivot.column(keys.pivot_related_foreign_key),
                )),
            )
        for expression in self.pivot_constraints(builder, pivot):
            statement = builder.shape_where(statement, expression)
        return builder.shape_where(
            statement,
            self.owner_constraint(builder, pivot.column(keys.pivot_foreign_key),
                                  keys.local_key_column),
        )

    def bridge_columns(self, builder):
        if builder.pivot_only:
            return []
        keys = self.keys
        pivot = self.pivot_table_expression(builder)
        names = [keys.pivot_foreign_key, keys.pivot_related_foreign_key]
        for name in list(keys.pivot_columns) + list(builder.pivot_columns):
            if name not in names:
                names.append(name)
        return [pivot.column(name).label(self.pivot_alias(name)) for name in names]

    def relation_keys(self, builder):
        return [builder.table.column(self.keys.related_key_column)]

    def pivot_query(self, owner, client=None):
        """Query the pivot rows of one owner directly; results are plain dicts."""
        from .query_builder import RelationQueryMode
        value = self.owner_value(owner)
        return self._builder(RelationQueryMode.SINGLE, client or owner.trx, [value], pivot_only=True)

    def pivot_identity(self, owner_value) -> dict[str, Any]:
        """Pivot columns identifying the owner side of a pivot row."""
        return {self.keys.pivot_foreign_key: owner_value}

    def client(self, owner):
        from .pivot import PivotSynchronizer
        return PivotSynchronizer(self, owner)
