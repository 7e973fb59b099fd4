"""Transactions with SAVEPOINT nesting.

``Connection.begin()`` (or :func:`begin`) opens a transaction; when one is
already open on the same connection, a savepoint is opened instead. A
:class:`Transaction` is a query client: models, builders and relation clients
accept it anywhere a connection is accepted. Rows that borrow a transaction
(see :meth:`Transaction.enlist`) drop it once the transaction finishes.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from .errors import TransactionError

logger = logging.getLogger("ormrel")

T = TypeVar("T")


class TransactionManager:
    """Tracks the transaction nesting level of one connection."""

    def __init__(self, connection):
        self._connection = connection
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    def begin(self) -> Transaction:
        level = self._level + 1
        dialect = self._connection.dialect
        savepoint_name = f"savepoint_{level}" if level > 1 else None
        if savepoint_name:
            sql = dialect.SAVEPOINT_SQL.format(name=savepoint_name)
        else:
            sql = dialect.BEGIN_SQL
        logger.debug(sql)
        self._connection.execute_write(sql)
        self._level = level
        return Transaction(self._connection, self, level, savepoint_name)

    def _finish(self, transaction: Transaction) -> None:
        self._level = transaction.level - 1

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Context manager: commit on success, roll back on exception."""
        trx = self.begin()
        try:
            yield trx
        except Exception:
            if trx.is_active:
                trx.rollback()
            raise
        if trx.is_active:
            trx.commit()


class Transaction:
    """An open transaction (or savepoint) on a connection."""

    is_transaction = True

    def __init__(self, connection, manager: TransactionManager, level: int,
                 savepoint_name: Optional[str] = None):
        self._connection = connection
        self._manager = manager
        self.level = level
        self.savepoint_name = savepoint_name
        self.is_active = True
        self._rows: list[Any] = []

    @property
    def dialect(self):
        return self._connection.dialect

    @property
    def name(self) -> str:
        return self._connection.name

    @property
    def connection(self):
        return self._connection

    def _check_usable(self) -> None:
        if not self.is_active:
            raise TransactionError("Transaction is no longer active")
        current_level = self._manager.level
        if current_level > self.level:
            raise TransactionError(
                f"Cannot use transaction level {self.level} from level {current_level}. "
                "Higher-level transactions cannot be accessed from nested transactions."
            )

    def execute(self, sql: str, values=(), rows_as_dicts: bool = True) -> list:
        self._check_usable()
        return self._connection.execute(sql, values, rows_as_dicts=rows_as_dicts)

    def execute_write(self, sql: str, values=()) -> int:
        self._check_usable()
        return self._connection.execute_write(sql, values)

    def insert(self, sql: str, values=(), returning: Optional[str] = None) -> Any:
        self._check_usable()
        return self._connection.insert(sql, values, returning=returning)

    def begin(self) -> Transaction:
        """Open a savepoint nested in this transaction."""
        self._check_usable()
        return self._manager.begin()

    def enlist(self, row) -> None:
        """Attach this transaction to a row until the transaction finishes."""
        row.trx = self
        if all(existing is not row for existing in self._rows):
            self._rows.append(row)

    def commit(self) -> None:
        self._check_usable()
        dialect = self.dialect
        if self.savepoint_name:
            if dialect.RELEASE_SAVEPOINT_SQL:
                sql = dialect.RELEASE_SAVEPOINT_SQL.format(name=self.savepoint_name)
                logger.debug(sql)
                self._connection.execute_write(sql)
        else:
            logger.debug("COMMIT")
            self._connection.execute_write("COMMIT")
        self._finish()

    def rollback(self) -> None:
        self._check_usable()
        if self.savepoint_name:
            sql = self.dialect.ROLLBACK_TO_SAVEPOINT_SQL.format(name=self.savepoint_name)
            logger.debug(sql)
            self._connection.execute_write(sql)
        else:
            logger.debug("ROLLBACK")
            self._connection.execute_write("ROLLBACK")
        self._finish()

    def _finish(self) -> None:
        self.is_active = False
        self._manager._finish(self)
        for row in self._rows:
            if row.trx is self:
                row.trx = None
        self._rows = []

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.is_active:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()


def begin(connection_name: str = "default") -> Transaction:
    from .connection import get_connection
    return get_connection(connection_name).begin()


def commit(trx: Transaction) -> None:
    trx.commit()


def rollback(trx: Transaction) -> None:
    trx.rollback()


@contextmanager
def transaction(connection_name: str = "default") -> Iterator[Transaction]:
    from .connection import get_connection
    with get_connection(connection_name).transaction() as trx:
        yield trx


def managed_transaction(client, callback: Callable[[Any], T]) -> T:
    """Run ``callback(trx)`` inside a transaction.

    When ``client`` already is a transaction, the callback runs in it and the
    caller keeps control of commit/rollback. Otherwise a transaction is opened
    on ``client``, committed on success and rolled back on error.
    """
    if client.is_transaction:
        return callback(client)
    trx = client.begin()
    try:
        result = callback(trx)
    except Exception:
        trx.rollback()
        raise
    trx.commit()
    return result
