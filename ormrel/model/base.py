"""Model base for ORM rows: attribute state, persistence and relation access."""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..connection import get_connection
from ..errors import RowNotFoundError
from ..query.aliases import AliasContext
from ..query.builder import ModelQueryBuilder
from ..registry import EntityDescriptor, registry
from ..statement import compile_insert
from ..transaction import managed_transaction
from .hydratable import Hydratable
from .meta import ModelMeta
from .soft_deletes import SoftDeletes


def scope(function: Callable[..., Any]) -> staticmethod:
    """Declare a local scope, applied with ``query.apply("name", *args)``.

    The function receives the query builder and must return the builder it derives::

        class Post(Model):
            @scope
            def published(query):
                return query.where_not_null("publishedAt")
    """
    function.is_scope = True
    return staticmethod(function)


class Model(Hydratable, metaclass=ModelMeta):
    """Base class for entities; each subclass is one table."""

    def __init__(self, **attributes: Any):
        self._init_state()
        descriptor = self.descriptor()
        for name, value in attributes.items():
            if not descriptor.has_column(name):
                raise ValueError(f"Invalid key found in data for {type(self).__name__}: {name}")
            self._attributes[name] = descriptor.columns[name].validate_value(value)

    def __repr__(self):
        key = self.descriptor().primary_key
        return f"<{type(self).__name__} {key}={self.get_attribute(key)!r}>"

    # attributes

    def get_attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        """Assign a value, validated against the column annotation when there is one."""
        self._attributes[name] = self.descriptor().columns[name].validate_value(value)

    def set_persisted_attribute(self, name: str, value: Any) -> None:
        """Set an attribute already written to the database (it does not become dirty)."""
        self._attributes[name] = value
        self._original[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self._attributes)

    @property
    def dirty(self) -> dict[str, Any]:
        """Attributes changed since the row was read or saved (all of them for a new row)."""
        if not self.persisted:
            return dict(self._attributes)
        return {
            name: value for name, value in self._attributes.items()
            if name not in self._original or self._original[name] != value
        }

    @property
    def is_dirty(self) -> bool:
        return bool(self.dirty)

    @property
    def primary_key_value(self) -> Any:
        return self.get_attribute(self.descriptor().primary_key)

    def to_dict(self) -> dict[str, Any]:
        """Attributes, then preloaded relations (serialized recursively)."""
        data = dict(self._attributes)
        for name, value in self._related.items():
            if isinstance(value, list):
                data[name] = [row.to_dict() for row in value]
            else:
                data[name] = value.to_dict() if value is not None else None
        return data

    # class-level access

    @classmethod
    def descriptor(cls) -> EntityDescriptor:
        return registry.get(cls)

    @classmethod
    def connection(cls):
        return get_connection(cls.descriptor().connection_name)

    @classmethod
    def query(cls, client=None, alias_context: Optional[AliasContext] = None) -> ModelQueryBuilder:
        """New query builder; ``alias_context`` controls self-join alias numbering."""
        if alias_context is None:
            return ModelQueryBuilder(model=cls, client=client)
        return ModelQueryBuilder(model=cls, client=client, alias_context=alias_context)

    @classmethod
    def find(cls, value: Any, client=None):
        return cls.query(client).where(cls.descriptor().primary_key, value).first()

    @classmethod
    def find_or_fail(cls, value: Any, client=None):
        row = cls.find(value, client)
        if row is None:
            raise RowNotFoundError(f"No {cls.__name__} row with {cls.descriptor().primary_key}={value!r}")
        return row

    @classmethod
    def all(cls, client=None) -> list:
        return cls.query(client).all()

    @classmethod
    def first(cls, client=None):
        return cls.query(client).first()

    @classmethod
    def create(cls, values: Optional[dict[str, Any]] = None, client=None, **attributes: Any):
        """Instantiate and save a row; with a transaction ``client`` the row borrows it."""
        row = cls(**{**(values or {}), **attributes})
        if client is not None and client.is_transaction:
            client.enlist(row)
        return row.save()

    @classmethod
    def create_many(cls, values_list: list[dict[str, Any]], client=None) -> list:
        """Create several rows in one managed transaction."""
        rows = [cls(**values) for values in values_list]

        def run(trx):
            for row in rows:
                trx.enlist(row)
                row.save()
            return rows

        return managed_transaction(client or cls.connection(), run)

    @classmethod
    def add_global_scope(cls, name: str, callback: Callable[[Any], Any]) -> None:
        """Merge ``callback`` into every query on this model until withheld by name."""
        cls.descriptor().add_global_scope(name, callback)

    # persistence

    def client(self):
        """The transaction this row borrowed, else the model's connection."""
        return self.trx or self.connection()

    def use_transaction(self, trx):
        trx.enlist(self)
        return self

    def identity_query(self) -> ModelQueryBuilder:
        """Query matching this row by primary key, ignoring global scopes."""
        key = self.descriptor().primary_key
        return type(self).query(self.client()).without_global_scopes().where(key, self.get_attribute(key))

    def save(self):
        """Insert a new row, or update the attributes changed since it was read."""
        descriptor = self.descriptor()
        client = self.client()
        if not self.persisted:
            key = descriptor.primary_key
            key_column = descriptor.column_name(key)
            returning = key_column if client.dialect.SUPPORTS_RETURNING else None
            sql, values = compile_insert(descriptor.table, [self.to_row()], returning=returning)
            inserted = client.insert(sql, values, returning=returning)
            if self.get_attribute(key) is None and inserted is not None:
                self._attributes[key] = descriptor.columns[key].parse(inserted)
            self.persisted = True
        else:
            dirty = self.dirty
            if dirty:
                self.identity_query().update(**dirty)
        self._original = dict(self._attributes)
        return self

    def delete(self) -> None:
        """Delete the row; soft-deletes it when the model has the capability."""
        capability = self.descriptor().capability(SoftDeletes)
        if capability is not None:
            capability.delete_row(self)
            return
        self.force_delete()

    def force_delete(self) -> None:
        self.identity_query().force_delete()
        self.persisted = False
        self.is_deleted = True

    def _soft_deletes(self, method: str) -> SoftDeletes:
        capability = self.descriptor().capability(SoftDeletes)
        if capability is None:
            raise NotImplementedError(f"{method} only applies to models with soft deletes")
        return capability

    def restore(self):
        self._soft_deletes("restore").restore_row(self)
        return self

    @property
    def trashed(self) -> bool:
        return self._soft_deletes("trashed").is_trashed(self)

    def refresh(self):
        """Reload attributes from the database."""
        fresh = self.identity_query().first()
        if fresh is None:
            raise RowNotFoundError(f"{type(self).__name__} row {self.primary_key_value!r} no longer exists")
        self._attributes = dict(fresh._attributes)
        self._original = dict(fresh._original)
        self.extras = dict(fresh.extras)
        return self

    # relations

    def related(self, name: str):
        """Relation client for this row (``user.related("posts").create({...})``)."""
        return self.descriptor().relation(name).client(self)

    def load(self, name: str, callback: Optional[Callable[[Any], Any]] = None):
        """Preload a relation on this already fetched row."""
        from ..query.preloader import Preloader
        Preloader(type(self), self.trx).preload(name, callback).process([self])
        return self

    def has_related(self, name: str) -> bool:
        return name in self._related

    def get_related(self, name: str) -> Any:
        """Preloaded value: ``None`` for an unset singular relation, ``[]`` for a plural one."""
        if name in self._related:
            return self._related[name]
        return [] if self.descriptor().relation(name).is_plural else None

    def set_related(self, name: str, value: Any) -> None:
        self._related[name] = value

    def push_related(self, name: str, rows: list) -> None:
        self.descriptor().relation(name).push_many(self, list(rows))
