"""Named database connections.

``connect(url, name)`` registers a URL; ``get_connection(name)`` returns the
calling thread's :class:`Connection` for it, opening the driver connection on
first use. A Connection is the query client used by models and builders; a
:class:`~ormrel.transaction.Transaction` exposes the same client interface.
"""

from __future__ import annotations

import logging
import threading
import urllib.parse
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .dialects import Dialect, get_dialect_for_scheme

logger = logging.getLogger("ormrel")


_urls: dict[str, str | Callable[[], str]] = {}
_generations: dict[str, int] = {}
_local = threading.local()


def connect(database_url: str | Callable[[], str], name: str = "default") -> None:
    """Register a database URL (or a callable returning one) under a connection name."""
    if not isinstance(database_url, str) and not callable(database_url):
        raise ValueError("`database_url` should be either a `str`, or a method returning a `str`")
    _urls[name] = database_url
    # cached per-thread connections for this name become stale
    _generations[name] = _generations.get(name, 0) + 1


def _resolve_url(name: str) -> str:
    try:
        url = _urls[name]
    except KeyError as error:
        raise ValueError(f"No connection configured with name=`{name}`") from error
    if callable(url):
        url = url()
    return url


def get_connection(name: str = "default") -> Connection:
    """Return the calling thread's connection for ``name``."""
    cache: dict[str, tuple[int, Connection]] = getattr(_local, "connections", None)
    if cache is None:
        cache = _local.connections = {}
    generation = _generations.get(name)
    cached = cache.get(name)
    if cached is not None and cached[0] == generation:
        return cached[1]
    if cached is not None:
        cached[1].close()
    url = _resolve_url(name)
    dialect = get_dialect_for_scheme(urllib.parse.urlparse(url).scheme)
    connection = Connection(name=name, dialect=dialect, raw=dialect.connect(url))
    logger.info("Opened connection `%s` (%s)", name, dialect.NAME)
    cache[name] = (_generations.get(name), connection)
    return connection


class Connection:
    """Query client bound to one raw driver connection."""

    is_transaction = False

    def __init__(self, name: str, dialect: Dialect, raw: Any):
        from .transaction import TransactionManager
        self.name = name
        self.dialect = dialect
        self.raw = raw
        self.transactions = TransactionManager(self)

    def _cursor_execute(self, sql: str, values=()):
        prepared = self.dialect.prepare_sql(sql)
        logger.debug("%s %s", sql, tuple(values))
        cursor = self.raw.cursor()
        cursor.execute(prepared, tuple(values))
        return cursor

    def execute(self, sql: str, values=(), rows_as_dicts: bool = True) -> list:
        """Run a statement and return its rows (dicts by default; empty for writes)."""
        cursor = self._cursor_execute(sql, values)
        try:
            if cursor.description is None:
                return []
            rows = cursor.fetchall()
            if not rows_as_dicts:
                return [tuple(row) for row in rows]
            names = [description[0] for description in cursor.description]
            return [dict(zip(names, row)) for row in rows]
        finally:
            cursor.close()

    def execute_write(self, sql: str, values=()) -> int:
        """Run an UPDATE/DELETE/INSERT and return the number of affected rows."""
        cursor = self._cursor_execute(sql, values)
        try:
            return cursor.rowcount
        finally:
            cursor.close()

    def insert(self, sql: str, values=(), returning: Optional[str] = None) -> Any:
        """Run an INSERT and return the generated primary key, when the driver reports one."""
        cursor = self._cursor_execute(sql, values)
        try:
            if returning and cursor.description is not None:
                row = cursor.fetchone()
                return row[0] if row else None
            return getattr(cursor, "lastrowid", None)
        finally:
            cursor.close()

    def begin(self):
        """Open a transaction (a savepoint when one is already open)."""
        return self.transactions.begin()

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        with self.transactions.transaction() as trx:
            yield trx

    def list_tables(self) -> list[str]:
        return [row["name"] for row in self.execute(self.dialect.list_tables_sql())]

    def get_advisory_lock(self, key: str) -> bool:
        sql, values = self.dialect.advisory_lock_sql(key)
        rows = self.execute(sql, values, rows_as_dicts=False)
        return bool(rows and rows[0][0])

    def release_advisory_lock(self, key: str) -> bool:
        sql, values = self.dialect.advisory_unlock_sql(key)
        rows = self.execute(sql, values, rows_as_dicts=False)
        return bool(rows and rows[0][0])

    def close(self) -> None:
        self.raw.close()
