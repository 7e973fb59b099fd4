"""Tests for per-owner relation clients: belongsTo associate/dissociate, hasOne/hasMany persistence."""

import pytest

from ormrel.transaction import transaction

from tests.models import Country, Post, Profile, User


class TestBelongsTo:

    def test_associate_saves_both_sides(self, schema):
        user = User(username="virk")
        country = Country(name="India")
        user.related("country").associate(country)
        assert country.persisted and user.persisted
        assert user.countryId == country.id
        assert user.country is country
        assert User.find(user.id).countryId == country.id

    def test_dissociate(self, schema):
        country = Country.create(name="India")
        user = User.create(username="virk", countryId=country.id)
        user.related("country").dissociate()
        assert user.countryId is None
        assert user.country is None
        assert User.find(user.id).countryId is None

    def test_query(self, schema):
        country = Country.create(name="India")
        user = User.create(username="virk", countryId=country.id)
        assert user.related("country").query().first().name == "India"


class TestHasMany:

    def test_save_sets_foreign_key(self, schema):
        user = User.create(username="virk")
        post = user.related("posts").save(Post(title="hello"))
        assert post.userId == user.id
        assert post.trx is None
        assert [p.title for p in user.related("posts").query().all()] == ["hello"]

    def test_save_persists_a_new_owner_first(self, schema):
        """An unsaved owner is inserted before its related row."""
        user = User(username="virk")
        user.related("posts").create({"title": "hello"})
        assert user.persisted
        assert Post.query().first().userId == user.id

    def test_create_many_is_atomic(self, schema):
        """A failing row rolls back the rows created before it."""
        user = User.create(username="virk")
        with pytest.raises(Exception):
            user.related("posts").create_many([{"title": "ok"}, {"title": None}])
        assert Post.query().count() == 0

    def test_caller_transaction(self, schema):
        user = User.create(username="virk")
        with pytest.raises(RuntimeError):
            with transaction() as trx:
                post = user.related("posts").create({"title": "hello"}, trx=trx)
                assert post.trx is trx
                raise RuntimeError("abort")
        assert Post.query().count() == 0
        assert user.trx is None

    def test_owner_borrowed_transaction(self, schema):
        """Rows created through an owner join the transaction the owner borrowed."""
        with transaction() as trx:
            user = User.create({"username": "virk"}, client=trx)
            post = user.related("posts").create({"title": "hello"})
            assert post.trx is trx
            trx.rollback()
        assert User.query().count() == 0
        assert Post.query().count() == 0

    def test_first_or_create(self, schema):
        user = User.create(username="virk")
        created = user.related("posts").first_or_create({"title": "hello"})
        found = user.related("posts").first_or_create({"title": "hello"})
        assert found.id == created.id
        assert Post.query().count() == 1

    def test_relation_query_delete_is_soft(self, schema):
        """Deleting through a relation query respects soft deletes."""
        user = User.create(username="virk")
        user.related("posts").create_many([{"title": "a"}, {"title": "b"}])
        assert user.related("posts").query().where("title", "a").delete() == 1
        assert [p.title for p in user.related("posts").query().all()] == ["b"]
        assert user.related("posts").query().with_trashed().count() == 2

    def test_assigning_rows_in_memory(self, schema):
        user = User(id=1)
        user.posts = [Post(title="a")]
        assert [p.title for p in user.posts] == ["a"]
        user.push_related("posts", [Post(title="b")])
        assert [p.title for p in user.posts] == ["a", "b"]


class TestHasOne:

    def test_save(self, schema):
        user = User.create(username="virk")
        profile = user.related("profile").create({"displayName": "Virk"})
        assert profile.userId == user.id
        assert user.related("profile").query().first().displayName == "Virk"

    def test_push_replaces_singular_value(self, schema):
        """Pushing onto a singular relation keeps the last row."""
        user = User(id=1)
        user.push_related("profile", [Profile(displayName="a"), Profile(displayName="b")])
        assert user.profile.displayName == "b"


class TestHasManyThrough:

    def test_query_through_intermediate_rows(self, schema):
        """Rows carry the through key they were matched on in their extras."""
        india = Country.create(name="India")
        virk = User.create(username="virk", countryId=india.id)
        virk.related("posts").create_many([{"title": "a"}, {"title": "b"}])
        posts = india.related("posts").query().order_by("id").all()
        assert [p.title for p in posts] == ["a", "b"]
        assert posts[0].extras["through_country_id"] == india.id

    def test_delete_through_is_soft(self, schema):
        india = Country.create(name="India")
        virk = User.create(username="virk", countryId=india.id)
        virk.related("posts").create({"title": "a"})
        assert india.related("posts").query().delete() == 1
        assert india.related("posts").query().count() == 0
        assert india.related("posts").query().with_trashed().count() == 1
