"""Column metadata for models.

Each column declared with :func:`column` on a Model subclass becomes a frozen
:class:`Column` bound to its attribute name by the model metaclass, and is
stored on the entity descriptor in declaration order.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter


@lru_cache(maxsize=None)
def _type_adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


class Column(BaseModel):
    """Metadata for a single column: logical name, physical name, primary flag, value hooks."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: Optional[str] = None
    """Logical attribute name (e.g. ``countryId``); set when bound to a model."""
    column_name: Optional[str] = None
    """Physical column name (e.g. ``country_id``); defaults from the naming strategy."""
    is_primary: bool = False
    prepare: Optional[Callable[[Any], Any]] = None
    """Converts an attribute value before it is written to the database."""
    consume: Optional[Callable[[Any], Any]] = None
    """Converts a database value when a row is hydrated."""
    annotation: Any = None
    """Type from the model annotation (``username: str = column()``); values assigned
    to the row are validated against it. ``None`` accepts anything."""

    def bind(self, name: str, column_name: str) -> Column:
        """Return a copy bound to an attribute name and a physical column name."""
        return self.model_copy(update={
            "name": name,
            "column_name": self.column_name or column_name,
        })

    def serialize(self, value: Any) -> Any:
        if self.prepare is None:
            return value
        return self.prepare(value)

    def validate_value(self, value: Any) -> Any:
        if self.annotation is None:
            return value
        return _type_adapter(self.annotation).validate_python(value)

    def parse(self, value: Any) -> Any:
        if self.consume is None or value is None:
            return value
        return self.consume(value)


def column(*, is_primary: bool = False, column_name: str | None = None,
           prepare: Callable[[Any], Any] | None = None,
           consume: Callable[[Any], Any] | None = None) -> Column:
    """Declare a column on a Model subclass.

    Example::

        class User(Model):
            id = column(is_primary=True)
            countryId = column()
    """
    return Column(is_primary=is_primary, column_name=column_name,
                  prepare=prepare, consume=consume)
