"""morphTo: the owner row points at one row of a model named by its type column.

``Image.imageable`` reads ``imageableType`` to pick the model through the morph
map, then behaves as a belongsTo on that model. Preloading groups owners by
type and issues one statement per type.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..errors import MissingKeyValueError
from ..registry import morph_map
from ..transaction import managed_transaction
from .base import Relation, RelationKind, ResolvedKeys
from .belongs_to import BelongsTo

logger = logging.getLogger("ormrel")


class MorphTo(Relation):
    kind = RelationKind.MORPH_TO
    is_plural = False
    owner_key_role = "foreign_key"

    def __init__(self, name, model, options):
        super().__init__(name, model, options)
        self._targets: dict[str, BelongsTo] = {}

    @property
    def related_model(self) -> type:
        raise ValueError(
            f'Relationship "{self.name}" is a morphTo; its related model depends on each row'
        )

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        options = self.options
        naming = resolver.naming
        foreign_key = options.foreign_key or naming.foreign_key(options.morph_name, options.local_key or "id")
        morph_type = options.morph_type or naming.morph_type_attribute(options.morph_name)
        return ResolvedKeys(
            local_key=options.local_key,
            foreign_key=foreign_key,
            foreign_key_column=resolver.require(self.model, foreign_key),
            morph_type=morph_type,
            morph_type_column=resolver.require(self.model, morph_type),
        )

    def for_type(self, alias: str) -> BelongsTo:
        """The belongsTo relation towards the model registered as ``alias``."""
        if alias not in self._targets:
            keys = self.boot()
            options = self.options.model_copy(update={
                "kind": RelationKind.BELONGS_TO,
                "related": morph_map.model_for(alias),
                "foreign_key": keys.foreign_key,
            })
            self._targets[alias] = BelongsTo(self.name, self.model, options)
        return self._targets[alias]

    def owner_type(self, owner, action: str = "query") -> Optional[str]:
        key = self.keys.morph_type
        if not owner.has_attribute(key):
            raise MissingKeyValueError(action, self.name, type(owner).__name__, key)
        return owner.get_attribute(key)

    def _target(self, owner, action: str) -> BelongsTo:
        alias = self.owner_type(owner, action)
        if alias is None:
            raise MissingKeyValueError(action, self.name, type(owner).__name__, self.keys.morph_type)
        return self.for_type(alias)

    def single_owner_query(self, owner, client=None):
        return self._target(owner, "query").single_owner_query(owner, client)

    def many_owner_query(self, owners: list, client=None):
        """Related rows of owners sharing one type."""
        if not owners:
            raise ValueError(f'Cannot query "{self.name}" without owners')
        return self._target(owners[0], "preload").many_owner_query(owners, client)

    def eager_load(self, owners: list, callback: Optional[Callable[[Any], Any]] = None,
                   client=None) -> None:
        groups: dict[str, list] = {}
        for owner in owners:
            self.owner_value(owner, "preload")
            alias = self.owner_type(owner, "preload")
            if alias is None:
                self.attach_one(owner, None)
                continue
            groups.setdefault(alias, []).append(owner)
        logger.debug("Preloading %s for types %s", self, sorted(groups))
        for alias, group in groups.items():
            self.for_type(alias).eager_load(group, callback, client)

    def hydrate_many(self, owners: list, related_rows: list) -> None:
        """Distribute rows of one model onto the owners whose type names that model."""
        by_type: dict[str, list] = {}
        for owner in owners:
            alias = owner.get_attribute(self.keys.morph_type)
            if alias is None:
                self.attach_one(owner, None)
            else:
                by_type.setdefault(alias, []).append(owner)
        for alias, group in by_type.items():
            target = self.for_type(alias)
            rows = [row for row in related_rows if isinstance(row, target.related_model)]
            target.hydrate_many(group, rows)

    def _existence_error(self) -> ValueError:
        return ValueError(f'Cannot query the existence of morphTo relationship "{self.name}"')

    def existence_table(self) -> str:
        raise self._existence_error()

    def exists_subquery(self, outer, alias=None, bridge_alias=None):
        raise self._existence_error()

    def client(self, owner):
        return MorphToClient(self, owner)


class MorphToClient:
    """Relation operations for one owner row of a morphTo relation."""

    def __init__(self, relation: MorphTo, owner):
        self.relation = relation
        self.owner = owner

    def query(self, client=None):
        return self.relation.single_owner_query(self.owner, client)

    def associate(self, related, trx=None):
        """Point the owner at ``related`` (saving it first when new) and save the owner."""
        keys = self.relation.boot()
        alias = morph_map.alias_for(type(related))
        target = self.relation.for_type(alias)

        def run(client):
            if client.is_transaction:
                client.enlist(self.owner)
                client.enlist(related)
            if not related.persisted:
                related.save()
            self.owner.set_attribute(keys.foreign_key, related.get_attribute(target.keys.local_key))
            self.owner.set_attribute(keys.morph_type, alias)
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
            self.owner.set_attribute(keys.morph_type, None)
            self.owner.save()

        managed_transaction(trx or self.owner.client(), run)
        self.relation.attach_one(self.owner, None)
        return self.owner
