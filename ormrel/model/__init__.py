"""Model base, metaclass, row hydration and capabilities."""

from .base import Model, scope
from .meta import ModelMeta
from .soft_deletes import SoftDeletes

__all__ = [
    "Model",
    "ModelMeta",
    "SoftDeletes",
    "scope",
]
