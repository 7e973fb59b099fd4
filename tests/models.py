"""Models shared by the test suite (tables are created by the ``schema`` fixture)."""

from ormrel import (
    Model,
    SoftDeletes,
    belongs_to,
    column,
    has_many,
    has_many_through,
    has_one,
    many_to_many,
    morph_many,
    morph_one,
    morph_to,
    morph_to_many,
    scope,
)


class Country(Model):
    id = column(is_primary=True)
    name = column()

    users = has_many(lambda: User)
    posts = has_many_through(lambda: Post, through=lambda: User)


class User(Model):
    id = column(is_primary=True)
    username = column()
    countryId = column()

    country = belongs_to(lambda: Country)
    profile = has_one(lambda: Profile)
    posts = has_many(lambda: Post)
    skills = many_to_many(lambda: Skill, pivot_columns=("proficiency",))
    tags = morph_to_many(lambda: Tag, morph_name="taggable")
    avatar = morph_one(lambda: Image, morph_name="imageable")


class Profile(Model):
    id = column(is_primary=True)
    userId = column()
    displayName = column()

    user = belongs_to(lambda: User)


class Post(Model, capabilities=(SoftDeletes(),)):
    id = column(is_primary=True)
    userId = column()
    title = column()

    user = belongs_to(lambda: User)
    comments = has_many(lambda: Comment)
    tags = morph_to_many(lambda: Tag, morph_name="taggable")
    images = morph_many(lambda: Image, morph_name="imageable")

    @scope
    def titled(query, title):
        return query.where("title", title)


class Comment(Model):
    id = column(is_primary=True)
    postId = column()
    body = column()

    post = belongs_to(lambda: Post)


class Skill(Model):
    id = column(is_primary=True)
    name = column()

    users = many_to_many(lambda: User)


class Tag(Model):
    id = column(is_primary=True)
    name = column()


class Image(Model):
    id = column(is_primary=True)
    url = column()
    imageableId = column()
    imageableType = column()

    imageable = morph_to("imageable")
