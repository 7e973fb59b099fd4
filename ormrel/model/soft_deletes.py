"""Soft-delete capability.

Attached with ``capabilities=(SoftDeletes(),)``. It installs a ``soft_deletes``
global scope that hides rows whose ``deletedAt`` is set, and turns row and
query deletes into updates of that column.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict

from ..column import Column
from ..expressions import RawExpression
from ..naming import default_naming
from ..query.builder import SOFT_DELETES_SCOPE


class SoftDeletes(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str = "deletedAt"
    """Logical name of the deletion timestamp column."""

    def install(self, descriptor) -> None:
        """Add the timestamp column when the model does not declare it, and the global scope."""
        if not descriptor.has_column(self.column):
            naming = descriptor.naming or default_naming
            descriptor.columns[self.column] = Column().bind(self.column, naming.column_name(self.column))
        column = self.column
        descriptor.add_global_scope(SOFT_DELETES_SCOPE, lambda query: query.where_null(column))

    def delete_row(self, row) -> None:
        row.identity_query().update(**{self.column: RawExpression(text="CURRENT_TIMESTAMP")})
        row.set_persisted_attribute(self.column, datetime.datetime.now())
        row.is_deleted = True

    def restore_row(self, row) -> None:
        row.identity_query().update(**{self.column: None})
        row.set_persisted_attribute(self.column, None)
        row.is_deleted = False

    def is_trashed(self, row) -> bool:
        return row.get_attribute(self.column) is not None
