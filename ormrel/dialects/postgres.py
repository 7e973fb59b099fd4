"""PostgreSQL dialect."""

import urllib.parse
from typing import ClassVar

from .base import Dialect


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (schemes postgresql, postgres)."""

    NAME: ClassVar[str] = "postgres"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")
    PARAMSTYLE: ClassVar[str] = "format"
    SUPPORTS_RETURNING: ClassVar[bool] = True

    def connect(self, url: str):
        import psycopg2
        parsed = urllib.parse.urlparse(url)
        connection = psycopg2.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port,
        )
        connection.autocommit = True
        return connection

    def list_tables_sql(self) -> str:
        return "SELECT table_name AS name FROM information_schema.tables WHERE table_schema = current_schema()"

    def advisory_lock_sql(self, key: str):
        return "SELECT pg_try_advisory_lock(hashtext(?)) AS locked", (key,)

    def advisory_unlock_sql(self, key: str):
        return "SELECT pg_advisory_unlock(hashtext(?)) AS released", (key,)
