"""morphOne and morphMany: related rows point at owners of several models.

The related table carries the owner key and a type column naming the owner
model (its morph alias, else its class name)::

    class Post(Model):
        images = morph_many(lambda: Image, morph_name="imageable")

    SELECT * FROM images WHERE images.imageable_type = ? AND images.imageable_id = ?
"""

from __future__ import annotations

from typing import Any

from ..expressions import NaryOperatorExpression
from ..registry import morph_map
from .base import RelationKind, ResolvedKeys
from .has_many import HasManyClient, HasOneOrMany, HasOneOrManyClient


class MorphOneOrMany(HasOneOrMany):

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        options = self.options
        local_key = options.local_key or resolver.owner.primary_key
        local_key_column = resolver.require(self.model, local_key)
        foreign_key = options.foreign_key or resolver.naming.foreign_key(options.morph_name, local_key)
        morph_type = options.morph_type or resolver.naming.morph_type_attribute(options.morph_name)
        return ResolvedKeys(
            local_key=local_key,
            local_key_column=local_key_column,
            foreign_key=foreign_key,
            foreign_key_column=resolver.require(self.related_model, foreign_key),
            morph_type=morph_type,
            morph_type_column=resolver.require(self.related_model, morph_type),
        )

    @property
    def morph_value(self) -> str:
        return morph_map.alias_for(self.model)

    def shape(self, builder, action: str):
        keys = self.keys
        statement = builder.shape_where(
            builder.base_statement(),
            NaryOperatorExpression(symbol="=", arguments=(
                builder.table.column(keys.morph_type_column), self.morph_value,
            )),
        )
        column = builder.table.column(keys.foreign_key_column)
        return builder.shape_where(
            statement, self.owner_constraint(builder, column, keys.local_key_column)
        )

    def link_attributes(self, owner_value) -> dict[str, Any]:
        return {self.keys.foreign_key: owner_value, self.keys.morph_type: self.morph_value}


class MorphOne(MorphOneOrMany):
    kind = RelationKind.MORPH_ONE
    is_plural = False

    def client(self, owner):
        return HasOneOrManyClient(self, owner)


class MorphMany(MorphOneOrMany):
    kind = RelationKind.MORPH_MANY

    def client(self, owner):
        return HasManyClient(self, owner)
