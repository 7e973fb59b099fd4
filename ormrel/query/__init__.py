from .aliases import AliasContext
from .builder import ModelQueryBuilder, QueryStage, SOFT_DELETES_SCOPE, apply_callback
from .existence import ExistenceCompiler
from .paginator import SimplePaginator
from .preloader import Preloader

__all__ = [
    "AliasContext",
    "ExistenceCompiler",
    "ModelQueryBuilder",
    "Preloader",
    "QueryStage",
    "SOFT_DELETES_SCOPE",
    "SimplePaginator",
    "apply_callback",
]
