"""Metadata registry: one entity descriptor per model class, plus the morph alias map."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from .column import Column
from .errors import UndefinedRelationshipError


class GlobalScope(BaseModel):
    """A named predicate merged into every query against an entity unless withheld."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    callback: Callable[[Any], Any]


class EntityDescriptor(BaseModel):
    """Table name, ordered columns, primary key and relations of one entity.

    Columns and relations are fixed when the model class is created. Global
    scopes may be appended afterwards, in registration order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    model: Any
    table: str
    primary_key: str
    columns: dict[str, Column] = Field(default_factory=dict)
    relations: dict[str, Any] = Field(default_factory=dict)
    local_scopes: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    global_scopes: list[GlobalScope] = Field(default_factory=list)
    capabilities: tuple[Any, ...] = ()
    connection_name: str = "default"
    naming: Any = None

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def column_name(self, attribute: str) -> str:
        """Physical column name for a logical attribute; unknown names are returned as is."""
        column = self.columns.get(attribute)
        if column is None:
            return attribute
        return column.column_name

    def attribute_name(self, column_name: str) -> Optional[str]:
        """Logical attribute name for a physical column, or ``None``."""
        for column in self.columns.values():
            if column.column_name == column_name:
                return column.name
        return None

    def relation(self, name: str):
        try:
            return self.relations[name]
        except KeyError as error:
            raise UndefinedRelationshipError(name, self.name) from error

    def capability(self, kind: type):
        """Return the attached capability of the given type, or ``None``."""
        for capability in self.capabilities:
            if isinstance(capability, kind):
                return capability
        return None

    def add_global_scope(self, name: str, callback: Callable[[Any], Any]) -> None:
        self.global_scopes = [scope for scope in self.global_scopes if scope.name != name]
        self.global_scopes.append(GlobalScope(name=name, callback=callback))


class Registry:
    """Entity descriptors keyed by model class."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_model: dict[type, EntityDescriptor] = {}
        self._by_name: dict[str, type] = {}

    def register(self, descriptor: EntityDescriptor) -> None:
        with self._lock:
            self._by_model[descriptor.model] = descriptor
            self._by_name[descriptor.name] = descriptor.model

    def __contains__(self, model: type) -> bool:
        return model in self._by_model

    def get(self, model: type) -> EntityDescriptor:
        try:
            return self._by_model[model]
        except KeyError as error:
            raise KeyError(f"{getattr(model, '__name__', model)!r} is not a registered model") from error

    def get_model(self, name: str) -> type:
        """Latest model class registered under the given class name."""
        try:
            return self._by_name[name]
        except KeyError as error:
            raise KeyError(f"No model registered with name `{name}`") from error

    def get_columns(self, model: type) -> list[dict[str, Any]]:
        return [
            {"logical_name": column.name,
             "physical_name": column.column_name,
             "is_primary": column.is_primary}
            for column in self.get(model).columns.values()
        ]

    def get_relation(self, model: type, name: str):
        return self.get(model).relation(name)


class MorphMap:
    """Process-wide ``alias -> model`` map for polymorphic type discriminators."""

    def __init__(self):
        self._models: dict[str, type] = {}

    def register(self, alias: str, model: type) -> None:
        self._models[alias] = model

    def unregister(self, alias: str) -> None:
        self._models.pop(alias, None)

    def alias_for(self, model: type) -> str:
        """Registered alias for the model, else its class name."""
        for alias, registered in self._models.items():
            if registered is model:
                return alias
        return model.__name__

    def model_for(self, alias: str) -> type:
        if alias in self._models:
            return self._models[alias]
        return registry.get_model(alias)


registry = Registry()
morph_map = MorphMap()
