"""Relation declarations.

Used in a model body::

    class User(Model):
        id = column(is_primary=True)
        countryId = column()

        country = belongs_to(lambda: Country)
        posts = has_many(lambda: Post)
        skills = many_to_many(lambda: Skill, pivot_columns=("proficiency",))
"""

from typing import Any

from .base import Relation, RelationKind, RelationOptions, ResolvedKeys
from .belongs_to import BelongsTo
from .has_many import HasMany
from .has_many_through import HasManyThrough
from .has_one import HasOne
from .many_to_many import ManyToMany
from .morph_one_or_many import MorphMany, MorphOne
from .morph_to import MorphTo
from .morph_to_many import MorphToMany
from .query_builder import RelationQueryBuilder, RelationQueryMode

RELATION_CLASSES: dict[RelationKind, type[Relation]] = {
    RelationKind.BELONGS_TO: BelongsTo,
    RelationKind.HAS_ONE: HasOne,
    RelationKind.HAS_MANY: HasMany,
    RelationKind.HAS_MANY_THROUGH: HasManyThrough,
    RelationKind.MANY_TO_MANY: ManyToMany,
    RelationKind.MORPH_ONE: MorphOne,
    RelationKind.MORPH_MANY: MorphMany,
    RelationKind.MORPH_TO: MorphTo,
    RelationKind.MORPH_TO_MANY: MorphToMany,
}


def make_relation(name: str, model: type, options: RelationOptions) -> Relation:
    return RELATION_CLASSES[options.kind](name, model, options)


def belongs_to(related: Any, **options: Any) -> RelationOptions:
    """The owner row holds ``foreign_key`` (default ``<relatedName>Id``) pointing at ``related``."""
    return RelationOptions(kind=RelationKind.BELONGS_TO, related=related, **options)


def has_one(related: Any, **options: Any) -> RelationOptions:
    return RelationOptions(kind=RelationKind.HAS_ONE, related=related, **options)


def has_many(related: Any, **options: Any) -> RelationOptions:
    """Rows of ``related`` hold ``foreign_key`` (default ``<ownerName>Id``) pointing at the owner."""
    return RelationOptions(kind=RelationKind.HAS_MANY, related=related, **options)


def has_many_through(related: Any, through: Any, **options: Any) -> RelationOptions:
    return RelationOptions(kind=RelationKind.HAS_MANY_THROUGH, related=related,
                           through=through, **options)


def many_to_many(related: Any, **options: Any) -> RelationOptions:
    if "pivot_columns" in options:
        options["pivot_columns"] = tuple(options["pivot_columns"])
    return RelationOptions(kind=RelationKind.MANY_TO_MANY, related=related, **options)


def morph_one(related: Any, morph_name: str, **options: Any) -> RelationOptions:
    """One row of ``related`` points at the owner through ``<morphName>Id`` and ``<morphName>Type``."""
    return RelationOptions(kind=RelationKind.MORPH_ONE, related=related,
                           morph_name=morph_name, **options)


def morph_many(related: Any, morph_name: str, **options: Any) -> RelationOptions:
    return RelationOptions(kind=RelationKind.MORPH_MANY, related=related,
                           morph_name=morph_name, **options)


def morph_to(morph_name: str, **options: Any) -> RelationOptions:
    """The owner points at a row of the model its ``<morphName>Type`` attribute names."""
    return RelationOptions(kind=RelationKind.MORPH_TO, related=None,
                           morph_name=morph_name, **options)


def morph_to_many(related: Any, morph_name: str | None = None, **options: Any) -> RelationOptions:
    """Many-to-many through a pivot shared by several owner models, told apart by a type column."""
    if "pivot_columns" in options:
        options["pivot_columns"] = tuple(options["pivot_columns"])
    return RelationOptions(kind=RelationKind.MORPH_TO_MANY, related=related,
                           morph_name=morph_name, **options)


__all__ = [
    "BelongsTo",
    "HasMany",
    "HasManyThrough",
    "HasOne",
    "ManyToMany",
    "MorphMany",
    "MorphOne",
    "MorphTo",
    "MorphToMany",
    "RELATION_CLASSES",
    "Relation",
    "RelationKind",
    "RelationOptions",
    "RelationQueryBuilder",
    "RelationQueryMode",
    "ResolvedKeys",
    "belongs_to",
    "has_many",
    "has_many_through",
    "has_one",
    "make_relation",
    "many_to_many",
    "morph_many",
    "morph_one",
    "morph_to",
    "morph_to_many",
]
