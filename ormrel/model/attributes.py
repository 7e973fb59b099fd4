"""Class attributes installed by the metaclass for declared columns and relations."""

from __future__ import annotations

from ..expressions import ColumnExpression
from ..registry import registry


class ColumnAttribute:
    """``User.email`` is a column expression; ``user.email`` is the row's value."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            descriptor = registry.get(owner)
            return ColumnExpression(table=descriptor.table, name=descriptor.column_name(self.name))
        return instance.get_attribute(self.name)

    def __set__(self, instance, value):
        instance.set_attribute(self.name, value)


class RelationAttribute:
    """``User.posts`` is the relation; ``user.posts`` is the preloaded value."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return registry.get(owner).relation(self.name)
        return instance.get_related(self.name)

    def __set__(self, instance, value):
        relation = registry.get(type(instance)).relation(self.name)
        if relation.is_plural:
            relation.attach_many(instance, list(value or []))
        else:
            relation.attach_one(instance, value)
