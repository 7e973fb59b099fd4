"""hasManyThrough: related rows reached through an intermediate (through) model.

``Country.posts`` through ``User``::

    SELECT posts.*, users.country_id AS through_country_id FROM posts
    INNER JOIN users ON users.id = posts.user_id WHERE users.country_id = ?
"""

from __future__ import annotations

from typing import Optional

from ..expressions import NaryOperatorExpression, TableExpression
from ..registry import registry
from ..statement import Statement
from .base import Relation, RelationKind, ResolvedKeys, resolve_model


class HasManyThrough(Relation):
    kind = RelationKind.HAS_MANY_THROUGH

    def __init__(self, name, model, options):
        super().__init__(name, model, options)
        self._through_model: Optional[type] = None

    @property
    def through_model(self) -> type:
        if self._through_model is None:
            self._through_model = resolve_model(self.options.through)
        return self._through_model

    @property
    def bridge_table(self) -> str:
        return registry.get(self.through_model).table

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        options = self.options
        through = resolver.descriptor(self.through_model)
        local_key = options.local_key or resolver.owner.primary_key
        local_key_column = resolver.require(self.model, local_key)
        foreign_key = resolver.foreign_key(resolver.owner, local_key, options.foreign_key)
        foreign_key_column = resolver.require(self.through_model, foreign_key)
        through_local_key = options.through_local_key or through.primary_key
        through_local_key_column = resolver.require(self.through_model, through_local_key)
        through_foreign_key = resolver.foreign_key(
            through, through_local_key, options.through_foreign_key
        )
        through_foreign_key_column = resolver.require(self.related_model, through_foreign_key)
        return ResolvedKeys(
            local_key=local_key,
            local_key_column=local_key_column,
            foreign_key=foreign_key,
            foreign_key_column=foreign_key_column,
            through_local_key=through_local_key,
            through_local_key_column=through_local_key_column,
            through_foreign_key=through_foreign_key,
            through_foreign_key_column=through_foreign_key_column,
        )

    @property
    def bridge_alias(self) -> str:
        return f"through_{self.keys.foreign_key_column}"

    def bridge_value(self, related_row):
        return self.parse_owner_key(related_row.extras.get(self.bridge_alias))

    def _through_table(self, builder) -> TableExpression:
        return TableExpression(name=self.bridge_table, alias=builder.bridge_alias)

    def shape(self, builder, action: str):
        keys = self.keys
        related = builder.table
        through = self._through_table(builder)
        if action in ("update", "delete"):
            # no joins in UPDATE/DELETE: constrain through a sub-query instead
            subquery = Statement(table=TableExpression(name=self.bridge_table))
            through_table = subquery.table
            subquery = subquery.select(through_table.column(keys.through_local_key_column)).where(
                self.owner_constraint(builder, through_table.column(keys.foreign_key_column),
                                      keys.local_key_column)
            )
            statement = Statement(table=TableExpression(name=related.name))
            column = statement.table.column(keys.through_foreign_key_column)
            return builder.shape_where(statement, column.in_(subquery))
        statement = builder.base_statement().join(
            through,
            NaryOperatorExpression(symbol="=", arguments=(
                through.column(keys.through_local_key_column),
                related.column(keys.through_foreign_key_column),
            )),
        )
        return builder.shape_where(
            statement,
            self.owner_constraint(builder, through.column(keys.foreign_key_column),
                                  keys.local_key_column),
        )

    def bridge_columns(self, builder):
        through = self._through_table(builder)
        return [through.column(self.keys.foreign_key_column).label(self.bridge_alias)]

    def relation_keys(self, builder):
        return [builder.table.column(self.keys.through_foreign_key_column)]

    def client(self, owner):
        return HasManyThroughClient(self, owner)


class HasManyThroughClient:
    """Relation operations for one owner row of a hasManyThrough relation."""

    def __init__(self, relation: HasManyThrough, owner):
        self.relation = relation
        self.owner = owner

    def query(self, client=None):
        return self.relation.single_owner_query(self.owner, client)
