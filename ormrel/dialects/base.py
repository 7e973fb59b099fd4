"""Base Dialect type: subclasses implement connect() for each engine."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from pydantic import BaseModel

from ..errors import DialectCapabilityError


class Dialect(BaseModel, ABC):
    """Base for database dialects.

    A dialect opens raw driver connections, adapts ``?`` placeholders to the
    driver's parameter style, renders LIMIT/OFFSET, and provides the SQL for
    optional capabilities. Capabilities a dialect lacks raise
    :class:`DialectCapabilityError`.
    """

    model_config = {"arbitrary_types_allowed": True}

    NAME: ClassVar[str] = "unknown"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mssql', 'sqlserver'))."""
    PARAMSTYLE: ClassVar[str] = "qmark"
    """``qmark`` (``?``) or ``format`` (``%s``)."""
    SUPPORTS_RETURNING: ClassVar[bool] = False
    BEGIN_SQL: ClassVar[str] = "BEGIN"
    SAVEPOINT_SQL: ClassVar[str] = "SAVEPOINT {name}"
    RELEASE_SAVEPOINT_SQL: ClassVar[Optional[str]] = "RELEASE SAVEPOINT {name}"
    ROLLBACK_TO_SAVEPOINT_SQL: ClassVar[str] = "ROLLBACK TO SAVEPOINT {name}"

    @abstractmethod
    def connect(self, url: str) -> Any:
        """Return a new raw driver connection for the given URL."""
        ...  # pylint: disable=unnecessary-ellipsis

    def prepare_sql(self, sql: str) -> str:
        """Adapt ``?`` placeholders to the driver's parameter style."""
        if self.PARAMSTYLE == "format":
            return sql.replace("%", "%%").replace("?", "%s")
        return sql

    def limit_clause(self, limit: Optional[int], offset: Optional[int]) -> str:
        sql = ""
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        if offset is not None:
            sql += f" OFFSET {int(offset)}"
        return sql

    def list_tables_sql(self) -> str:
        raise DialectCapabilityError("table introspection", self.NAME)

    def advisory_lock_sql(self, key: str) -> tuple[str, tuple[Any, ...]]:
        raise DialectCapabilityError("advisory locks", self.NAME)

    def advisory_unlock_sql(self, key: str) -> tuple[str, tuple[Any, ...]]:
        raise DialectCapabilityError("advisory locks", self.NAME)
