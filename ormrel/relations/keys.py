"""Key resolution: naming-convention defaults plus validation against the registry."""

from __future__ import annotations

from ..errors import MissingModelAttributeError
from ..naming import default_naming
from ..registry import EntityDescriptor, registry


class KeyResolver:
    """Resolves the keys of one relation.

    Each ``require`` call checks that a logical attribute exists on a model and
    returns its physical column name, failing with ``E_MISSING_MODEL_ATTRIBUTE``
    otherwise.
    """

    def __init__(self, relation):
        self.relation = relation
        self.owner = registry.get(relation.model)
        self.naming = self.owner.naming or default_naming

    def descriptor(self, model: type) -> EntityDescriptor:
        return registry.get(model)

    def require(self, model: type, attribute: str) -> str:
        descriptor = registry.get(model)
        if not descriptor.has_column(attribute):
            raise MissingModelAttributeError(
                self.relation.name, self.owner.name, attribute, descriptor.name
            )
        return descriptor.columns[attribute].column_name

    def foreign_key(self, referenced: EntityDescriptor, local_key: str, override: str | None) -> str:
        return override or self.naming.foreign_key(referenced.name, local_key)
