"""Tests for ormrel.dialects: scheme lookup, placeholders, LIMIT syntax and capabilities."""

import pytest

from ormrel.dialects import (
    MysqlDialect,
    PostgresDialect,
    SqliteDialect,
    SqlserverDialect,
    get_dialect_for_scheme,
)
from ormrel.errors import DialectCapabilityError, UnsupportedDialectError


@pytest.mark.parametrize("scheme, expected", [
    ("sqlite", SqliteDialect),
    ("mysql", MysqlDialect),
    ("mysql+pymysql", MysqlDialect),
    ("postgresql", PostgresDialect),
    ("postgres", PostgresDialect),
    ("mssql", SqlserverDialect),
    ("SQLServer", SqlserverDialect),
])
def test_get_dialect_for_scheme(scheme, expected):
    assert isinstance(get_dialect_for_scheme(scheme), expected)


def test_unsupported_scheme():
    """Unknown schemes raise a coded error that lists the supported ones."""
    with pytest.raises(UnsupportedDialectError) as info:
        get_dialect_for_scheme("oracle+cx")
    assert isinstance(info.value, ValueError)
    assert info.value.scheme == "oracle+cx"
    assert str(info.value) == (
        "E_UNSUPPORTED_DIALECT: Unsupported database scheme: oracle+cx "
        "(expected one of mssql, mysql, postgres, postgresql, sqlite, sqlserver)"
    )


def test_prepare_sql():
    """``?`` placeholders become ``%s`` and literal percent signs are escaped for pyformat drivers."""
    sql = "SELECT * FROM users WHERE name LIKE '10%' AND id = ?"
    assert SqliteDialect().prepare_sql(sql) == sql
    assert MysqlDialect().prepare_sql(sql) == "SELECT * FROM users WHERE name LIKE '10%%' AND id = %s"
    assert PostgresDialect().prepare_sql("id = ?") == "id = %s"


def test_limit_clauses():
    assert PostgresDialect().limit_clause(10, None) == " LIMIT 10"
    assert PostgresDialect().limit_clause(None, 4) == " OFFSET 4"
    assert SqliteDialect().limit_clause(None, 4) == " LIMIT -1 OFFSET 4"
    assert MysqlDialect().limit_clause(None, 4) == " LIMIT 18446744073709551615 OFFSET 4"
    assert SqlserverDialect().limit_clause(10, 20) == " OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"


def test_transaction_sql():
    assert MysqlDialect.BEGIN_SQL == "START TRANSACTION"
    assert SqlserverDialect.SAVEPOINT_SQL.format(name="savepoint_2") == "SAVE TRANSACTION savepoint_2"
    assert SqlserverDialect.RELEASE_SAVEPOINT_SQL is None


def test_returning_support():
    assert PostgresDialect.SUPPORTS_RETURNING
    assert not SqliteDialect.SUPPORTS_RETURNING


class TestCapabilities:

    def test_advisory_locks_missing_on_sqlite(self):
        with pytest.raises(DialectCapabilityError) as info:
            SqliteDialect().advisory_lock_sql("key")
        assert str(info.value) == "E_NOT_IMPLEMENTED: Support for advisory locks is not implemented for sqlite"
        assert isinstance(info.value, NotImplementedError)

    def test_advisory_locks_missing_on_sqlserver(self):
        with pytest.raises(DialectCapabilityError, match="advisory locks"):
            SqlserverDialect().advisory_unlock_sql("key")

    def test_advisory_lock_sql(self):
        assert MysqlDialect().advisory_lock_sql("jobs") == ("SELECT GET_LOCK(?, 0) AS locked", ("jobs",))
        sql, values = PostgresDialect().advisory_unlock_sql("jobs")
        assert "pg_advisory_unlock" in sql and values == ("jobs",)

    def test_sqlite_connect_memory(self):
        connection = SqliteDialect().connect("sqlite://")
        try:
            assert connection.execute("SELECT 1").fetchone() == (1,)
        finally:
            connection.close()
