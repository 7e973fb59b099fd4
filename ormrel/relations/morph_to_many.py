"""morphToMany: a many-to-many pivot shared by several owner models.

The pivot carries a type column holding the owner's morph alias (its class
name when no alias is registered), so ``taggables`` can link tags to users and
posts alike.
"""

from __future__ import annotations

from typing import Any

from ..expressions import NaryOperatorExpression
from ..registry import morph_map
from .base import RelationKind, ResolvedKeys
from .many_to_many import ManyToMany


class MorphToMany(ManyToMany):
    kind = RelationKind.MORPH_TO_MANY

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        options = self.options
        keys = self._resolve_pivot_keys(resolver)
        naming = resolver.naming
        if options.morph_name:
            if not options.pivot_table:
                keys["pivot_table"] = naming.morph_pivot_table(options.morph_name)
            if not options.pivot_foreign_key:
                keys["pivot_foreign_key"] = f"{options.morph_name}_id"
            type_column = options.morph_type_column or f"{options.morph_name}_type"
        else:
            type_column = options.morph_type_column or naming.morph_type_column(resolver.owner.table)
        keys["morph_type_column"] = type_column
        return ResolvedKeys(**keys)

    @property
    def morph_value(self) -> str:
        return morph_map.alias_for(self.model)

    def pivot_constraints(self, builder, pivot):
        return [NaryOperatorExpression(symbol="=", arguments=(
            pivot.column(self.keys.morph_type_column), self.morph_value,
        ))]

    def pivot_identity(self, owner_value) -> dict[str, Any]:
        return {
            self.keys.pivot_foreign_key: owner_value,
            self.keys.morph_type_column: self.morph_value,
        }
