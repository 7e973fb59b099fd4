"""hasOne: a single related row holds a foreign key to the owner."""

from .base import RelationKind
from .has_many import HasOneOrMany, HasOneOrManyClient


class HasOne(HasOneOrMany):
    kind = RelationKind.HAS_ONE
    is_plural = False

    def client(self, owner):
        return HasOneOrManyClient(self, owner)
