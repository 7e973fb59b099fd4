"""Pivot table writes for manyToMany and morphToMany relations.

Every write runs in one managed transaction: the caller's ``trx``, else the
transaction the owner row borrowed, else a new one committed on success and
rolled back on error.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ..statement import compile_insert
from ..transaction import managed_transaction

logger = logging.getLogger("ormrel")


class PivotSynchronizer:
    """Relation operations for one owner row of a pivot relation."""

    def __init__(self, relation, owner):
        self.relation = relation
        self.owner = owner

    def _client(self, trx=None):
        return trx or self.owner.client()

    @staticmethod
    def _normalize(ids) -> dict[str, tuple[Any, dict[str, Any]]]:
        """``[1, 2]`` or ``{1: {"role": "admin"}}`` -> ``{"1": (1, {...})}``, keyed by ``str(id)``."""
        if isinstance(ids, dict):
            return {str(key): (key, dict(attributes or {})) for key, attributes in ids.items()}
        if not isinstance(ids, (list, tuple, set)):
            ids = [ids]
        return {str(key): (key, {}) for key in ids}

    def query(self, client=None):
        return self.relation.single_owner_query(self.owner, client)

    def pivot_query(self, client=None):
        """Pivot rows of this owner, as plain dicts."""
        return self.relation.pivot_query(self.owner, client)

    def _insert(self, client, targets: Iterable[tuple[Any, dict[str, Any]]]) -> int:
        keys = self.relation.keys
        identity = self.relation.pivot_identity(
            self.relation.serialize_owner_key(self.relation.owner_value(self.owner, "attach"))
        )
        groups: dict[tuple[str, ...], list[dict[str, Any]]] = {}
        for related_id, attributes in targets:
            row = {**identity, keys.pivot_related_foreign_key: related_id, **attributes}
            groups.setdefault(tuple(row), []).append(row)
        inserted = 0
        for rows in groups.values():
            sql, values = compile_insert(keys.pivot_table, rows)
            client.execute_write(sql, values)
            inserted += len(rows)
        return inserted

    def attach(self, ids, trx=None) -> None:
        """Insert one pivot row per id; ``ids`` may map ids to extra pivot attributes."""
        targets = self._normalize(ids)
        if not targets:
            return
        managed_transaction(self._client(trx), lambda client: self._insert(client, targets.values()))

    def detach(self, ids=None, trx=None) -> int:
        """Delete this owner's pivot rows, only those pointing at ``ids`` when given."""
        rfk = self.relation.keys.pivot_related_foreign_key

        def run(client):
            query = self.pivot_query(client)
            if ids is not None:
                query = query.where_in_pivot(
                    rfk, [related_id for related_id, _ in self._normalize(ids).values()]
                )
            return query.delete()

        return managed_transaction(self._client(trx), run)

    def sync(self, ids, detach_missing: bool = True, trx=None) -> dict[str, list[Any]]:
        """Make this owner's pivot rows match ``ids``.

        Missing ids are inserted. Existing ids are updated only when extra
        attributes are given and differ from the stored row. Pivot rows not in
        ``ids`` are deleted when ``detach_missing`` is set.
        """
        targets = self._normalize(ids)
        rfk = self.relation.keys.pivot_related_foreign_key

        def run(client):
            current = {str(row[rfk]): row for row in self.pivot_query(client).all()}
            detached: list[Any] = []
            if detach_missing:
                detached = [row[rfk] for key, row in current.items() if key not in targets]
                if detached:
                    self.pivot_query(client).where_in_pivot(rfk, detached).delete()
            updated: list[Any] = []
            for key, (related_id, attributes) in targets.items():
                stored = current.get(key)
                if stored is None or not attributes:
                    continue
                if all(stored.get(name) == value for name, value in attributes.items()):
                    continue
                self.pivot_query(client).where_pivot(rfk, stored[rfk]).update(**attributes)
                updated.append(related_id)
            attached = [target for key, target in targets.items() if key not in current]
            if attached:
                self._insert(client, attached)
            logger.debug("Synced %s: %d attached, %d updated, %d detached",
                         self.relation, len(attached), len(updated), len(detached))
            return {
                "attached": [related_id for related_id, _ in attached],
                "updated": updated,
                "detached": detached,
            }

        return managed_transaction(self._client(trx), run)

    def save(self, related, check_existing: bool = True,
             pivot_attributes: Optional[dict[str, Any]] = None, trx=None):
        """Persist ``related`` (and the owner) when needed, then link them."""
        self.save_many([related], check_existing, [pivot_attributes or {}], trx)
        return related

    def save_many(self, rows: list, check_existing: bool = True,
                  pivot_attributes: Optional[list[dict[str, Any]]] = None, trx=None) -> list:
        """Persist ``rows`` (and the owner) when needed, then link each of them.

        With ``check_existing``, rows already linked to the owner are not
        linked again. ``pivot_attributes``, when given, holds one dict per row.
        """
        rows = list(rows)
        attributes = list(pivot_attributes or [{} for _ in rows])
        if len(attributes) != len(rows):
            raise ValueError(
                f"Expected {len(rows)} pivot attribute entries, one per row, got {len(attributes)}"
            )
        keys = self.relation.boot()
        rfk = keys.pivot_related_foreign_key

        def run(client):
            if client.is_transaction:
                client.enlist(self.owner)
            self.owner.save()
            targets: dict[str, tuple[Any, dict[str, Any]]] = {}
            for row, extra in zip(rows, attributes):
                if client.is_transaction:
                    client.enlist(row)
                row.save()
                related_id = row.get_attribute(keys.related_key)
                targets[str(related_id)] = (related_id, dict(extra or {}))
            if check_existing and targets:
                linked = self.pivot_query(client).where_in_pivot(
                    rfk, [related_id for related_id, _ in targets.values()]
                ).all()
                for row in linked:
                    targets.pop(str(row[rfk]), None)
            if targets:
                self._insert(client, targets.values())

        managed_transaction(self._client(trx), run)
        return rows

    def create(self, values: dict[str, Any], check_existing: bool = True,
               pivot_attributes: Optional[dict[str, Any]] = None, trx=None):
        related = self.relation.related_model(**values)
        return self.save(related, check_existing, pivot_attributes, trx)

    def create_many(self, values_list: list[dict[str, Any]], check_existing: bool = True,
                    pivot_attributes: Optional[list[dict[str, Any]]] = None, trx=None) -> list:
        model = self.relation.related_model
        rows = [model(**values) for values in values_list]
        return self.save_many(rows, check_existing, pivot_attributes, trx)
