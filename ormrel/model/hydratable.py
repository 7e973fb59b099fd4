"""Hydratable mixin: instance-building from raw row data."""

from __future__ import annotations

from typing import Any

from ..registry import registry


class Hydratable:
    """Mixin that builds model instances from database records and back."""

    def _init_state(self) -> None:
        self._attributes: dict[str, Any] = {}
        self._original: dict[str, Any] = {}
        self.extras: dict[str, Any] = {}
        self._related: dict[str, Any] = {}
        self.trx = None
        self.persisted = False
        self.is_deleted = False

    @classmethod
    def from_row(cls, row: dict[str, Any], client=None):
        """Instance from one record keyed by physical column names."""
        return cls.from_rows([row], client)[0]

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]], client=None) -> list:
        """Instances from records keyed by physical column names.

        Keys that are not columns of the model (``pivot_*``, ``through_*``,
        counts) are kept in ``extras``. Rows read inside a transaction borrow it.
        """
        columns = {column.column_name: column for column in registry.get(cls).columns.values()}
        instances = []
        for row in rows:
            instance = cls.__new__(cls)
            instance._init_state()
            for key, value in row.items():
                column = columns.get(key)
                if column is None:
                    instance.extras[key] = value
                else:
                    instance._attributes[column.name] = column.parse(value)
            instance._original = dict(instance._attributes)
            instance.persisted = True
            if client is not None and client.is_transaction:
                client.enlist(instance)
            instances.append(instance)
        return instances

    def to_row(self) -> dict[str, Any]:
        """Attributes keyed by physical column names, serialized for writing."""
        columns = registry.get(type(self)).columns
        return {
            columns[name].column_name: columns[name].serialize(value)
            for name, value in self._attributes.items()
        }

    def copy_row(self):
        """Independent copy of this row; preloaded relations are shared."""
        copy = type(self).__new__(type(self))
        copy._init_state()
        copy._attributes = dict(self._attributes)
        copy._original = dict(self._original)
        copy.extras = dict(self.extras)
        copy._related = dict(self._related)
        copy.persisted = self.persisted
        copy.is_deleted = self.is_deleted
        if self.trx is not None:
            self.trx.enlist(copy)
        return copy
