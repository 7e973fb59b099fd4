"""Shared test helpers."""

from contextlib import contextmanager

from ormrel.connection import get_connection


@contextmanager
def count_statements(name: str = "default"):
    """Record the SQL of every statement executed on a connection while the block runs."""
    connection = get_connection(name)
    statements: list[str] = []
    original = connection._cursor_execute

    def recording(sql, values=()):
        statements.append(sql)
        return original(sql, values)

    connection._cursor_execute = recording
    try:
        yield statements
    finally:
        del connection._cursor_execute


def writes(statements: list[str]) -> list[str]:
    """Statements that modify rows."""
    return [sql for sql in statements if sql.split()[0] in ("INSERT", "UPDATE", "DELETE")]


def selects(statements: list[str]) -> list[str]:
    return [sql for sql in statements if sql.startswith("SELECT")]
