"""Metaclass for Model: builds and registers the entity descriptor of each subclass."""

from __future__ import annotations

import inspect
import typing
from typing import Any, Optional

from ..column import Column
from ..naming import NamingStrategy, default_naming
from ..registry import EntityDescriptor, morph_map, registry
from ..relations import RelationOptions, make_relation
from .attributes import ColumnAttribute, RelationAttribute


def _type_hints(cls) -> dict[str, Any]:
    """Resolved annotations of a model class, empty when its body declares none."""
    if not inspect.get_annotations(cls):
        return {}
    return typing.get_type_hints(cls)


class ModelMeta(type):
    """Collects columns, relations and scopes declared in a model body.

    Class keywords configure the entity::

        class Post(Model, table="blog_posts", capabilities=(SoftDeletes(),)):
            ...
    """

    def __new__(mcs, name, bases, namespace,
                table: Optional[str] = None,
                connection_name: Optional[str] = None,
                morph_alias: Optional[str] = None,
                capabilities: Optional[tuple[Any, ...]] = None,
                naming: Optional[NamingStrategy] = None,
                **kwargs):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        parents = [registry.get(base) for base in bases
                   if isinstance(base, ModelMeta) and base in registry]
        if not parents and not any(isinstance(base, ModelMeta) for base in bases):
            # the Model base class itself
            return cls
        parent = parents[0] if parents else None

        naming = naming or (parent.naming if parent else None) or default_naming
        if capabilities is None:
            capabilities = parent.capabilities if parent else ()
        if connection_name is None:
            connection_name = parent.connection_name if parent else "default"

        columns: dict[str, Column] = {}
        relation_options: dict[str, RelationOptions] = {}
        local_scopes: dict[str, Any] = {}
        if parent is not None:
            columns.update(parent.columns)
            relation_options.update(
                {key: relation.options for key, relation in parent.relations.items()}
            )
            local_scopes.update(parent.local_scopes)
        for key, value in namespace.items():
            if isinstance(value, Column):
                columns[key] = value.bind(key, naming.column_name(key))
            elif isinstance(value, RelationOptions):
                relation_options[key] = value
            elif getattr(getattr(value, "__func__", None), "is_scope", False):
                local_scopes[key] = value.__func__

        primary_key = next((key for key, column in columns.items() if column.is_primary), None)
        if primary_key is None:
            primary_key = "id"
            existing = columns.pop("id", None) or Column().bind("id", naming.column_name("id"))
            columns = {"id": existing.model_copy(update={"is_primary": True}), **columns}
        for key, annotation in _type_hints(cls).items():
            if key in columns:
                columns[key] = columns[key].model_copy(update={"annotation": annotation})

        descriptor = EntityDescriptor(
            name=name,
            model=cls,
            table=table or naming.table_name(name),
            primary_key=primary_key,
            columns=columns,
            local_scopes=local_scopes,
            global_scopes=list(parent.global_scopes) if parent else [],
            capabilities=tuple(capabilities),
            connection_name=connection_name,
            naming=naming,
        )
        descriptor.relations = {
            key: make_relation(key, cls, options) for key, options in relation_options.items()
        }
        for capability in descriptor.capabilities:
            capability.install(descriptor)

        for key in descriptor.columns:
            setattr(cls, key, ColumnAttribute(key))
        for key in descriptor.relations:
            setattr(cls, key, RelationAttribute(key))
        registry.register(descriptor)
        if morph_alias:
            morph_map.register(morph_alias, cls)
        return cls

    def __init__(cls, name, bases, namespace, **kwargs):
        super().__init__(name, bases, namespace)
