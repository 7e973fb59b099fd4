"""SQLite dialect."""

import logging
import sqlite3
import urllib.parse
from typing import ClassVar

from .base import Dialect

logger = logging.getLogger(__name__)


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    NAME: ClassVar[str] = "sqlite"
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)
    SUPPORTS_RETURNING: ClassVar[bool] = False

    def connect(self, url: str):
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname or ":memory:"
        logger.info("Connecting to SQLite database %s", path)
        # autocommit; transactions are opened explicitly with BEGIN
        conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def limit_clause(self, limit, offset):
        if limit is None and offset is not None:
            return f" LIMIT -1 OFFSET {int(offset)}"
        return super().limit_clause(limit, offset)

    def list_tables_sql(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
