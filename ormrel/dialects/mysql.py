"""MySQL dialect."""

import urllib.parse
from typing import ClassVar

from .base import Dialect


class MysqlDialect(Dialect):
    """Dialect for MySQL (scheme mysql)."""

    NAME: ClassVar[str] = "mysql"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql",)
    PARAMSTYLE: ClassVar[str] = "format"
    BEGIN_SQL: ClassVar[str] = "START TRANSACTION"

    def connect(self, url: str):
        import pymysql
        parsed = urllib.parse.urlparse(url)
        return pymysql.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port or 3306,
            autocommit=True,
        )

    def limit_clause(self, limit, offset):
        if limit is None and offset is not None:
            return f" LIMIT 18446744073709551615 OFFSET {int(offset)}"
        return super().limit_clause(limit, offset)

    def list_tables_sql(self) -> str:
        return "SELECT table_name AS name FROM information_schema.tables WHERE table_schema = DATABASE()"

    def advisory_lock_sql(self, key: str):
        return "SELECT GET_LOCK(?, 0) AS locked", (key,)

    def advisory_unlock_sql(self, key: str):
        return "SELECT RELEASE_LOCK(?) AS released", (key,)
