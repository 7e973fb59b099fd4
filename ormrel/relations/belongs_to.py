"""belongsTo: the owner row holds a foreign key to one related row."""

from __future__ import annotations

from ..transaction import managed_transaction
from .base import Relation, RelationKind, ResolvedKeys


class BelongsTo(Relation):
    kind = RelationKind.BELONGS_TO
    is_plural = False
    owner_key_role = "foreign_key"

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        related = resolver.descriptor(self.related_model)
        local_key = self.options.local_key or related.primary_key
        local_key_column = resolver.require(self.related_model, local_key)
        foreign_key = resolver.foreign_key(related, local_key, self.options.foreign_key)
        foreign_key_column = resolver.require(self.model, foreign_key)
        return ResolvedKeys(
            local_key=local_key,
            local_key_column=local_key_column,
            foreign_key=foreign_key,
            foreign_key_column=foreign_key_column,
        )

    def bridge_value(self, related_row):
        return related_row.get_attribute(self.keys.local_key)

    def shape(self, builder, action: str):
        keys = self.keys
        statement = builder.base_statement()
        column = builder.table.column(keys.local_key_column)
        return builder.shape_where(
            statement, self.owner_constraint(builder, column, keys.foreign_key_column)
        )

    def relation_keys(self, builder):
        return [builder.table.column(self.keys.local_key_column)]

    def client(self, owner):
        return BelongsToClient(self, owner)


class BelongsToClient:
    """Relation operations for one owner row of a belongsTo relation."""

    def __init__(self, relation: BelongsTo, owner):
        self.relation = relation
        self.owner = owner

    def query(self, client=None):
        return self.relation.single_owner_query(self.owner, client)

    def associate(self, related, trx=None):
        """Point the owner's foreign key at ``related`` (saving it first when new) and save the owner."""
        keys = self.relation.boot()

        def run(client):
            if client.is_transaction:
                client.enlist(self.owner)
                client.enlist(related)
            if not related.persisted:
                related.save()
            self.owner.set_attribute(keys.foreign_key, related.get_attribute(keys.local_key))
            self.owner.save()

        managed_transaction(trx or self.owner.client(), run)
        self.relation.attach_one(self.owner, related)
        return self.owner

    def dissociate(self, trx=None):
        keys = self.relation.boot()

        def run(client):
            if client.is_transaction:
                client.enlist(self.owner)
            self.owner.set_attribute(keys.foreign_key, None)
            self.owner.save()

        managed_transaction(trx or self.owner.client(), run)
        self.relation.attach_one(self.owner, None)
        return self.owner
