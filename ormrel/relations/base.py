"""Relation descriptors and the contract shared by every relation kind.

A relation is declared on a model class (``posts = has_many(lambda: Post)``),
turned into a :class:`Relation` by the model metaclass, and booted lazily:
booting resolves the target model and every key the relation's SQL uses, then
caches the result. A relation that failed to boot keeps failing with the same
error.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, ClassVar, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from ..errors import MissingKeyValueError
from ..expressions import ColumnExpression, Expression, NaryOperatorExpression
from ..registry import registry

logger = logging.getLogger("ormrel")


class RelationKind(str, enum.Enum):
    BELONGS_TO = "belongsTo"
    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    HAS_MANY_THROUGH = "hasManyThrough"
    MANY_TO_MANY = "manyToMany"
    MORPH_ONE = "morphOne"
    MORPH_MANY = "morphMany"
    MORPH_TO = "morphTo"
    MORPH_TO_MANY = "morphToMany"


class RelationOptions(BaseModel):
    """What a relation declaration carries until the model class is built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: RelationKind
    related: Any
    """Target model: a class, a thunk returning one, or a registered class name."""
    through: Any = None
    local_key: Optional[str] = None
    foreign_key: Optional[str] = None
    through_local_key: Optional[str] = None
    through_foreign_key: Optional[str] = None
    related_key: Optional[str] = None
    pivot_table: Optional[str] = None
    pivot_foreign_key: Optional[str] = None
    pivot_related_foreign_key: Optional[str] = None
    pivot_columns: tuple[str, ...] = ()
    morph_name: Optional[str] = None
    morph_type_column: Optional[str] = None
    morph_type: Optional[str] = None
    """Attribute holding the type alias, for morphOne, morphMany and morphTo."""
    on_query: Optional[Callable[[Any], Any]] = None


class ResolvedKeys(BaseModel):
    """Logical key names and their physical columns, fixed once a relation boots."""

    model_config = ConfigDict(frozen=True)

    local_key: Optional[str] = None
    local_key_column: Optional[str] = None
    foreign_key: Optional[str] = None
    foreign_key_column: Optional[str] = None
    through_local_key: Optional[str] = None
    through_local_key_column: Optional[str] = None
    through_foreign_key: Optional[str] = None
    through_foreign_key_column: Optional[str] = None
    related_key: Optional[str] = None
    related_key_column: Optional[str] = None
    pivot_table: Optional[str] = None
    pivot_foreign_key: Optional[str] = None
    pivot_related_foreign_key: Optional[str] = None
    pivot_columns: tuple[str, ...] = ()
    morph_type_column: Optional[str] = None
    morph_type: Optional[str] = None


def resolve_model(target: Any) -> type:
    """Resolve a lazy relation target to a model class."""
    if isinstance(target, str):
        return registry.get_model(target)
    if isinstance(target, type):
        return target
    if callable(target):
        return resolve_model(target())
    raise TypeError(f"Cannot resolve relation target {target!r}")


class Relation:
    """Base of all relation kinds.

    Subclasses implement key resolution (``_resolve_keys``), the statement
    shape for each query mode (``shape``), and the bridge value used to match
    related rows back to their owners (``bridge_value``).
    """

    kind: ClassVar[RelationKind]
    is_plural: ClassVar[bool] = True
    owner_key_role: ClassVar[str] = "local_key"
    """Which resolved key holds the owner-side value (``foreign_key`` for belongsTo)."""

    def __init__(self, name: str, model: type, options: RelationOptions):
        self.name = name
        self.model = model
        self.options = options
        self._keys: Optional[ResolvedKeys] = None
        self._boot_error: Optional[Exception] = None
        self._related_model: Optional[type] = None

    def __repr__(self):
        return f"<{type(self).__name__} {self.model.__name__}.{self.name}>"

    # boot

    @property
    def related_model(self) -> type:
        if self._related_model is None:
            self._related_model = resolve_model(self.options.related)
        return self._related_model

    @property
    def booted(self) -> bool:
        return self._keys is not None

    def boot(self) -> ResolvedKeys:
        """Resolve and validate keys once; later calls return the cached result."""
        if self._keys is not None:
            return self._keys
        if self._boot_error is not None:
            raise self._boot_error
        from .keys import KeyResolver
        try:
            self._keys = self._resolve_keys(KeyResolver(self))
        except Exception as error:
            logger.error("Cannot boot relation %s.%s: %s", self.model.__name__, self.name, error)
            self._boot_error = error
            raise
        return self._keys

    @property
    def keys(self) -> ResolvedKeys:
        return self.boot()

    def _resolve_keys(self, resolver) -> ResolvedKeys:
        raise NotImplementedError

    # owner values

    @property
    def owner_key(self) -> str:
        return getattr(self.keys, self.owner_key_role)

    def owner_value(self, owner, action: str = "query") -> Any:
        """Value of the owner-side key; raises when the owner row does not carry it."""
        key = self.owner_key
        if not owner.has_attribute(key):
            raise MissingKeyValueError(action, self.name, type(owner).__name__, key)
        return owner.get_attribute(key)

    def owner_values(self, owners: Iterable[Any], action: str = "preload") -> list[Any]:
        """Distinct non-null owner-side values, in owner order."""
        values: list[Any] = []
        for owner in owners:
            value = self.owner_value(owner, action)
            if value is not None and value not in values:
                values.append(value)
        return values

    def owner_constraint(self, builder, column: ColumnExpression, outer_column: str) -> Expression:
        """Predicate tying ``column`` to the owner(s) of ``builder``.

        Correlated to ``<outer>.<outer_column>`` for existence sub-queries, an
        equality for one owner, an ``IN`` over many owners.
        """
        from .query_builder import RelationQueryMode
        if builder.mode == RelationQueryMode.EXISTS:
            outer = ColumnExpression(table=builder.outer_reference, name=outer_column)
            return NaryOperatorExpression(symbol="=", arguments=(outer, column))
        if builder.mode == RelationQueryMode.SINGLE:
            return NaryOperatorExpression(
                symbol="=", arguments=(column, self.serialize_owner_key(builder.owner_values[0]))
            )
        return column.in_([self.serialize_owner_key(value) for value in builder.owner_values])

    # in-memory values

    def attach_one(self, owner, related) -> None:
        owner.set_related(self.name, related)

    def attach_many(self, owner, related: list) -> None:
        owner.set_related(self.name, list(related))

    def push_one(self, owner, related) -> None:
        if not self.is_plural:
            self.attach_one(owner, related)
            return
        self.push_many(owner, [related])

    def push_many(self, owner, related: list) -> None:
        if not self.is_plural:
            if related:
                self.attach_one(owner, related[-1])
            return
        current = owner.get_related(self.name) or []
        owner.set_related(self.name, list(current) + list(related))

    def bridge_value(self, related_row) -> Any:
        """Value on a related row that equals its owner's ``owner_key`` value."""
        raise NotImplementedError

    def parse_owner_key(self, value: Any) -> Any:
        """A raw database value of the owner key, converted like the owner attribute."""
        return registry.get(self.model).columns[self.owner_key].parse(value)

    def serialize_owner_key(self, value: Any) -> Any:
        """An owner key value as it is written to the database."""
        return registry.get(self.model).columns[self.owner_key].serialize(value)

    def hydrate_many(self, owners: list, related_rows: list) -> None:
        """Distribute related rows onto the owners whose key they match.

        A row matching several owners is copied for every owner after the
        first, so owners never share row instances.
        """
        buckets: dict[Any, list] = {}
        for row in related_rows:
            buckets.setdefault(self.bridge_value(row), []).append(row)
        assigned: set[int] = set()
        for owner in owners:
            value = owner.get_attribute(self.owner_key)
            matches = []
            for row in buckets.get(value, []) if value is not None else []:
                if id(row) in assigned:
                    row = row.copy_row()
                assigned.add(id(row))
                matches.append(row)
            if self.is_plural:
                self.attach_many(owner, matches)
            else:
                self.attach_one(owner, matches[0] if matches else None)

    # queries

    @property
    def bridge_table(self) -> Optional[str]:
        """Intermediate (through or pivot) table joined by this relation, if any."""
        return None

    def _builder(self, mode, client=None, owner_values=(), **fields):
        from .query_builder import RelationQueryBuilder
        self.boot()
        return RelationQueryBuilder(
            model=self.related_model,
            relation=self,
            mode=mode,
            client=client,
            owner_values=list(owner_values),
            **fields,
        )

    def _apply_hook(self, builder):
        if self.options.on_query is None:
            return builder
        from ..query.builder import QueryStage, apply_callback
        hooked = apply_callback(self.options.on_query, builder.at_stage(QueryStage.HOOK))
        return hooked.at_stage(QueryStage.USER)

    def single_owner_query(self, owner, client=None):
        """Related rows of one owner; the relation's ``on_query`` hook is applied."""
        from .query_builder import RelationQueryMode
        value = self.owner_value(owner)
        builder = self._builder(RelationQueryMode.SINGLE, client or owner.trx, [value])
        return self._apply_hook(builder)

    def many_owner_query(self, owners: list, client=None):
        """Related rows of many owners in one statement, for preloading."""
        from .query_builder import RelationQueryMode
        values = self.owner_values(owners, "preload")
        builder = self._builder(RelationQueryMode.EAGER, client, values)
        return self._apply_hook(builder)

    def eager_load(self, owners: list, callback: Optional[Callable[[Any], Any]] = None,
                   client=None) -> None:
        """Load this relation onto ``owners`` with one statement."""
        from ..query.builder import apply_callback
        query = self.many_owner_query(owners, client)
        if not query.owner_values:
            logger.debug("Preload of %s skipped: no owner key values", self)
            self.hydrate_many(owners, [])
            return
        if callback is not None:
            query = apply_callback(callback, query)
        self.hydrate_many(owners, query.all())

    def existence_table(self) -> str:
        """Table the existence sub-query selects from."""
        return registry.get(self.related_model).table

    def exists_subquery(self, outer, alias: Optional[str] = None,
                        bridge_alias: Optional[str] = None):
        """Related rows correlated to the rows of ``outer``; hooks are not applied."""
        from .query_builder import RelationQueryMode
        return self._builder(
            RelationQueryMode.EXISTS,
            outer.client,
            alias=alias,
            bridge_alias=bridge_alias,
            outer_reference=outer.reference,
            alias_context=outer.alias_context,
        )

    def shape(self, builder, action: str):
        """Base statement (table, joins, owner constraint) for ``action``."""
        raise NotImplementedError

    def bridge_columns(self, builder) -> list[Expression]:
        return []

    def relation_keys(self, builder) -> list[Expression]:
        """Columns that must be selected for eager results to be matched to owners."""
        return []

    def client(self, owner):
        raise NotImplementedError
