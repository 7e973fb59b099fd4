"""ormrel: relation resolution and query compilation for a small ORM built on Pydantic and SQL."""

from .column import Column, column
from .connection import connect, get_connection
from .errors import (
    DialectCapabilityError,
    MissingKeyValueError,
    MissingModelAttributeError,
    OrmError,
    PaginationError,
    RowNotFoundError,
    TransactionError,
    UndefinedRelationshipError,
    UnsupportedDialectError,
)
from .model import Model, SoftDeletes, scope
from .naming import NamingStrategy
from .query import AliasContext, ModelQueryBuilder, SimplePaginator
from .registry import morph_map, registry
from .relations import (
    belongs_to,
    has_many,
    has_many_through,
    has_one,
    many_to_many,
    morph_many,
    morph_one,
    morph_to,
    morph_to_many,
)
from .transaction import begin, commit, managed_transaction, rollback, transaction

__all__ = [
    "AliasContext",
    "Column",
    "DialectCapabilityError",
    "MissingKeyValueError",
    "MissingModelAttributeError",
    "Model",
    "ModelQueryBuilder",
    "NamingStrategy",
    "OrmError",
    "PaginationError",
    "RowNotFoundError",
    "SimplePaginator",
    "SoftDeletes",
    "TransactionError",
    "UndefinedRelationshipError",
    "UnsupportedDialectError",
    "begin",
    "belongs_to",
    "column",
    "commit",
    "connect",
    "get_connection",
    "has_many",
    "has_many_through",
    "has_one",
    "managed_transaction",
    "many_to_many",
    "morph_many",
    "morph_map",
    "morph_one",
    "morph_to",
    "morph_to_many",
    "registry",
    "rollback",
    "scope",
    "transaction",
]
