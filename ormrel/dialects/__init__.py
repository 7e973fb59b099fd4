"""Dialect lookup by connection URL scheme.

Driver suffixes are ignored (``mysql+pymysql`` selects MySQL) and schemes are
case-insensitive. Each call returns a new dialect instance.
"""

from ..errors import UnsupportedDialectError
from .base import Dialect
from .mysql import MysqlDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect
from .sqlserver import SqlserverDialect

DIALECTS_BY_SCHEME: dict[str, type[Dialect]] = {
    scheme: dialect
    for dialect in (SqliteDialect, MysqlDialect, PostgresDialect, SqlserverDialect)
    for scheme in dialect.SUPPORTED_SCHEMA
}


def get_dialect_for_scheme(scheme: str) -> Dialect:
    engine = (scheme or "").partition("+")[0].lower()
    try:
        return DIALECTS_BY_SCHEME[engine]()
    except KeyError:
        raise UnsupportedDialectError(scheme, sorted(DIALECTS_BY_SCHEME)) from None


__all__ = [
    "DIALECTS_BY_SCHEME",
    "Dialect",
    "MysqlDialect",
    "PostgresDialect",
    "SqliteDialect",
    "SqlserverDialect",
    "get_dialect_for_scheme",
]
