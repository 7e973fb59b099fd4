"""hasMany (and the shared base of hasOne): related rows hold a foreign key to the owner."""

from __future__ import annotations

from typing import Any, Optional

from ..transaction import managed_transaction
from .base import Relation, RelationKind, ResolvedKeys


class HasOneOrMany(Relation):
    """Keys and shapes shared by hasOne and hasMany."""

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        local_key = self.options.local_key or resolver.owner.primary_key
        local_key_column = resolver.require(self.model, local_key)
        foreign_key = resolver.foreign_key(resolver.owner, local_key, self.options.foreign_key)
        foreign_key_column = resolver.require(self.related_model, foreign_key)
        return ResolvedKeys(
            local_key=local_key,
            local_key_column=local_key_column,
            foreign_key=foreign_key,
            foreign_key_column=foreign_key_column,
        )

    def bridge_value(self, related_row):
        return related_row.get_attribute(self.keys.foreign_key)

    def shape(self, builder, action: str):
        keys = self.keys
        statement = builder.base_statement()
        column = builder.table.column(keys.foreign_key_column)
        return builder.shape_where(
            statement, self.owner_constraint(builder, column, keys.local_key_column)
        )

    def relation_keys(self, builder):
        return [builder.table.column(self.keys.foreign_key_column)]

    def link_attributes(self, owner_value) -> dict[str, Any]:
        """Attributes a related row is given to belong to an owner."""
        return {self.keys.foreign_key: owner_value}


class HasMany(HasOneOrMany):
    kind = RelationKind.HAS_MANY

    def client(self, owner):
        return HasManyClient(self, owner)


class HasOneOrManyClient:
    """Relation operations for one owner row of a hasOne/hasMany relation.

    Persistence methods run in one managed transaction: the caller's ``trx``,
    else the owner's borrowed transaction, else a new one. Every row saved by
    the operation borrows that transaction until it ends.
    """

    def __init__(self, relation: HasOneOrMany, owner):
        self.relation = relation
        self.owner = owner

    def query(self, client=None):
        return self.relation.single_owner_query(self.owner, client)

    def _persist(self, rows: list, trx=None) -> None:
        self.relation.boot()

        def run(client):
            if client.is_transaction:
                client.enlist(self.owner)
            self.owner.save()
            value = self.relation.owner_value(self.owner, "save")
            for row in rows:
                if client.is_transaction:
                    client.enlist(row)
                for name, linked in self.relation.link_attributes(value).items():
                    row.set_attribute(name, linked)
                row.save()

        managed_transaction(trx or self.owner.client(), run)

    def save(self, related, trx=None):
        self._persist([related], trx)
        return related

    def create(self, values: dict[str, Any], trx=None):
        related = self.relation.related_model(**values)
        return self.save(related, trx)

    def first_or_create(self, search: dict[str, Any], extra: Optional[dict[str, Any]] = None, trx=None):
        """First related row matching ``search``, else a new one created with ``search`` and ``extra``."""
        existing = self.query(trx).where(**search).first()
        if existing is not None:
            return existing
        return self.create({**search, **(extra or {})}, trx)


class HasManyClient(HasOneOrManyClient):

    def save_many(self, rows: list, trx=None) -> list:
        self._persist(list(rows), trx)
        return list(rows)

    def create_many(self, values_list: list[dict[str, Any]], trx=None) -> list:
        model = self.relation.related_model
        return self.save_many([model(**values) for values in values_list], trx)
