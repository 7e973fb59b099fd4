"""SQL Server dialect."""

import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect


class SqlserverDialect(Dialect):
    """Dialect for SQL Server (schemes mssql, sqlserver)."""

    NAME: ClassVar[str] = "mssql"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")
    BEGIN_SQL: ClassVar[str] = "BEGIN TRANSACTION"
    SAVEPOINT_SQL: ClassVar[str] = "SAVE TRANSACTION {name}"
    RELEASE_SAVEPOINT_SQL: ClassVar[Optional[str]] = None
    ROLLBACK_TO_SAVEPOINT_SQL: ClassVar[str] = "ROLLBACK TRANSACTION {name}"

    def connect(self, url: str):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        database = (parsed.path or "").lstrip("/") or None
        port = parsed.port or 1433
        server = parsed.hostname or "localhost"
        if port and port != 1433:
            server = f"{server},{port}"
        conn_str = (
            f"DRIVER={{ODBC Driver 17 for SQL Server}};"
            f"SERVER={server};"
            f"DATABASE={database or ''};"
            f"UID={parsed.username or ''};"
            f"PWD={parsed.password or ''}"
        )
        return pyodbc.connect(conn_str, autocommit=True)

    def limit_clause(self, limit, offset):
        # OFFSET/FETCH requires an ORDER BY clause in the statement
        sql = f" OFFSET {int(offset or 0)} ROWS"
        if limit is not None:
            sql += f" FETCH NEXT {int(limit)} ROWS ONLY"
        return sql

    def list_tables_sql(self) -> str:
        return "SELECT table_name AS name FROM information_schema.tables WHERE table_type = 'BASE TABLE'"
