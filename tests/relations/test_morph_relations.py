"""Tests for morphOne, morphMany and morphTo: statements, writes and preloading."""

import pytest

from ormrel.errors import MissingKeyValueError, PaginationError
from ormrel.registry import morph_map

from tests.helpers import count_statements, selects
from tests.models import Image, Post, User


def _sql(builder):
    statement = builder.to_statement()
    return statement.sql, statement.values


def _images(schema):
    rows = schema.execute("SELECT * FROM images ORDER BY id")
    return [(row["url"], row["imageable_id"], row["imageable_type"]) for row in rows]


@pytest.fixture
def aliased_users():
    morph_map.register("user", User)
    yield
    morph_map.unregister("user")


class TestMorphOneOrManyQueries:

    def test_morph_one(self):
        assert _sql(User(id=1).related("avatar").query()) == (
            "SELECT * FROM images WHERE images.imageable_type = ? AND images.imageable_id = ?",
            ("User", 1),
        )

    def test_morph_many_eager(self):
        """Preload statements keep the type predicate ahead of the owner IN list."""
        query = Post.images.many_owner_query([Post(id=1), Post(id=2)])
        assert _sql(query) == (
            "SELECT * FROM images WHERE images.imageable_type = ? AND images.imageable_id IN (?, ?)",
            ("Post", 1, 2),
        )

    def test_registered_alias_is_the_type_value(self, aliased_users):
        assert _sql(User(id=1).related("avatar").query())[1] == ("user", 1)

    def test_has_morph_many(self):
        assert _sql(Post.query().has("images")) == (
            "SELECT * FROM posts WHERE posts.deleted_at IS NULL AND EXISTS (SELECT * FROM images "
            "WHERE images.imageable_type = ? AND posts.id = images.imageable_id)",
            ("Post",),
        )

    def test_has_morph_one(self):
        assert _sql(User.query().has("avatar")) == (
            "SELECT * FROM users WHERE EXISTS (SELECT * FROM images "
            "WHERE images.imageable_type = ? AND users.id = images.imageable_id)",
            ("User",),
        )

    def test_morph_one_cannot_paginate(self, schema):
        with pytest.raises(PaginationError) as info:
            User(id=1).related("avatar").query().paginate(1, 10)
        assert str(info.value).endswith('Cannot paginate a morphOne relationship "(avatar)"')


class TestMorphOneOrManyWrites:

    def test_save_sets_key_and_type(self, schema):
        virk = User.create(username="virk")
        avatar = virk.related("avatar").save(Image(url="virk.png"))
        assert avatar.imageableType == "User"
        assert _images(schema) == [("virk.png", virk.id, "User")]

    def test_create_many(self, schema):
        post = Post.create(title="hello")
        post.related("images").create_many([{"url": "a.png"}, {"url": "b.png"}])
        assert _images(schema) == [("a.png", post.id, "Post"), ("b.png", post.id, "Post")]

    def test_rows_of_another_owner_type_are_not_matched(self, schema):
        """A user and a post sharing an id each see only their own images."""
        virk = User.create(username="virk")
        post = Post.create(title="hello")
        assert virk.id == post.id
        virk.related("avatar").create({"url": "virk.png"})
        post.related("images").create({"url": "post.png"})
        assert [i.url for i in post.related("images").query().all()] == ["post.png"]
        assert virk.related("avatar").query().first().url == "virk.png"

    def test_preload(self, schema):
        virk = User.create(username="virk")
        first = Post.create(title="first")
        Post.create(title="second")
        first.related("images").create_many([{"url": "a.png"}, {"url": "b.png"}])
        virk.related("avatar").create({"url": "virk.png"})
        with count_statements() as statements:
            posts = Post.query().preload("images").order_by("id").all()
        assert len(selects(statements)) == 2
        assert [[i.url for i in p.images] for p in posts] == [["a.png", "b.png"], []]
        users = User.query().preload("avatar").all()
        assert users[0].avatar.url == "virk.png"

    def test_aliased_type_is_written(self, schema, aliased_users):
        virk = User.create(username="virk")
        virk.related("avatar").create({"url": "virk.png"})
        assert _images(schema) == [("virk.png", virk.id, "user")]


class TestMorphTo:

    def test_query_follows_the_row_type(self):
        assert _sql(Image(id=1, imageableId=4, imageableType="User").related("imageable").query()) == (
            "SELECT * FROM users WHERE users.id = ?", (4,)
        )
        assert _sql(Image(id=2, imageableId=5, imageableType="Post").related("imageable").query()) == (
            "SELECT * FROM posts WHERE posts.id = ? AND posts.deleted_at IS NULL", (5,)
        )

    def test_registered_alias_resolves_the_model(self, aliased_users):
        image = Image(id=1, imageableId=4, imageableType="user")
        assert _sql(image.related("imageable").query())[0] == "SELECT * FROM users WHERE users.id = ?"

    def test_missing_type(self):
        with pytest.raises(MissingKeyValueError) as info:
            Image(id=1, imageableId=4).related("imageable").query()
        assert str(info.value) == (
            'E_MISSING_KEY_VALUE: Cannot query "imageable", value of "Image.imageableType" is undefined'
        )
        with pytest.raises(MissingKeyValueError):
            Image(id=1, imageableId=4, imageableType=None).related("imageable").query()

    def test_unknown_type(self):
        with pytest.raises(KeyError, match="No model registered with name `Podcast`"):
            Image(id=1, imageableId=4, imageableType="Podcast").related("imageable").query()

    def test_existence_is_unsupported(self):
        with pytest.raises(ValueError, match='Cannot query the existence of morphTo relationship "imageable"'):
            Image.query().has("imageable")

    def test_preload_issues_one_statement_per_type(self, schema):
        """Owners are grouped by type; rows without a type get None."""
        virk = User.create(username="virk")
        romain = User.create(username="romain")
        post = Post.create(title="hello")
        virk.related("avatar").create({"url": "virk.png"})
        post.related("images").create({"url": "post.png"})
        romain.related("avatar").create({"url": "romain.png"})
        Image.create(url="orphan.png")
        with count_statements() as statements:
            images = Image.query().preload("imageable").order_by("id").all()
        assert len(selects(statements)) == 3
        owners = [image.imageable for image in images]
        assert [type(owner).__name__ for owner in owners[:3]] == ["User", "Post", "User"]
        assert [owners[0].username, owners[1].title, owners[2].username] == ["virk", "hello", "romain"]
        assert owners[3] is None

    def test_load_on_one_row(self, schema):
        post = Post.create(title="hello")
        image = post.related("images").create({"url": "a.png"})
        fetched = Image.find(image.id).load("imageable")
        assert fetched.imageable.title == "hello"

    def test_associate_and_dissociate(self, schema):
        """associate saves a new related row and writes both the key and the type."""
        image = Image.create(url="a.png")
        post = Post(title="new")
        image.related("imageable").associate(post)
        assert post.persisted
        assert _images(schema) == [("a.png", post.id, "Post")]
        assert image.imageable is post
        image.related("imageable").dissociate()
        assert _images(schema) == [("a.png", None, None)]
        assert image.imageable is None
