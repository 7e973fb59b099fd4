"""Tests for the statements relation query builders compile to, per relation kind and mode."""

import pytest

from ormrel import Model, column, has_many
from ormrel.errors import MissingKeyValueError
from ormrel.relations import RelationQueryBuilder, RelationQueryMode

from tests.models import Country, Post, Profile, User


def _sql(builder):
    statement = builder.to_statement()
    return statement.sql, statement.values


class TestSingleOwner:

    def test_belongs_to(self):
        profile = Profile(id=3, userId=1)
        assert _sql(profile.related("user").query()) == ("SELECT * FROM users WHERE users.id = ?", (1,))

    def test_belongs_to_on_country(self):
        user = User(id=1, countryId=9)
        assert _sql(user.related("country").query()) == (
            "SELECT * FROM countries WHERE countries.id = ?", (9,)
        )

    def test_has_one(self):
        assert _sql(User(id=1).related("profile").query()) == (
            "SELECT * FROM profiles WHERE profiles.user_id = ?", (1,)
        )

    def test_has_many_applies_global_scopes_after_the_constraint(self):
        assert _sql(User(id=1).related("posts").query()) == (
            "SELECT * FROM posts WHERE posts.user_id = ? AND posts.deleted_at IS NULL", (1,)
        )

    def test_has_many_through(self):
        assert _sql(Country(id=5).related("posts").query()) == (
            "SELECT posts.*, users.country_id AS through_country_id FROM posts "
            "INNER JOIN users ON users.id = posts.user_id "
            "WHERE users.country_id = ? AND posts.deleted_at IS NULL",
            (5,),
        )

    def test_many_to_many(self):
        assert _sql(User(id=1).related("skills").query()) == (
            "SELECT skills.*, skill_user.user_id AS pivot_user_id, skill_user.skill_id AS pivot_skill_id, "
            "skill_user.proficiency AS pivot_proficiency FROM skills "
            "INNER JOIN skill_user ON skills.id = skill_user.skill_id WHERE skill_user.user_id = ?",
            (1,),
        )

    def test_morph_to_many(self):
        assert _sql(User(id=1).related("tags").query()) == (
            "SELECT tags.*, taggables.taggable_id AS pivot_taggable_id, taggables.tag_id AS pivot_tag_id "
            "FROM tags INNER JOIN taggables ON tags.id = taggables.tag_id "
            "WHERE taggables.taggable_type = ? AND taggables.taggable_id = ?",
            ("User", 1),
        )

    def test_morph_type_value_follows_owner_model(self):
        assert _sql(Post(id=4).related("tags").query())[1] == ("Post", 4)

    def test_missing_owner_key(self):
        with pytest.raises(MissingKeyValueError) as info:
            User(username="virk").related("posts").query()
        assert str(info.value) == 'E_MISSING_KEY_VALUE: Cannot query "posts", value of "User.id" is undefined'


class TestUserPredicates:

    def test_or_where_cannot_widen_the_relation_constraint(self):
        """User OR predicates are grouped after the owner constraint."""
        query = User(id=1).related("posts").query().where("title", "a").or_where("title", "b")
        assert _sql(query) == (
            "SELECT * FROM posts WHERE posts.user_id = ? AND posts.deleted_at IS NULL "
            "AND (posts.title = ? OR posts.title = ?)",
            (1, "a", "b"),
        )

    def test_and_only_predicates_are_not_grouped(self):
        query = User(id=1).related("posts").query().where("title", "a")
        assert _sql(query)[0] == (
            "SELECT * FROM posts WHERE posts.user_id = ? AND posts.deleted_at IS NULL AND posts.title = ?"
        )

    def test_with_trashed_drops_the_scope(self):
        query = User(id=1).related("posts").query().with_trashed()
        assert _sql(query) == ("SELECT * FROM posts WHERE posts.user_id = ?", (1,))

    def test_where_pivot(self):
        query = User(id=1).related("skills").query().where_pivot("proficiency", "expert")
        sql, values = _sql(query)
        assert sql.endswith("WHERE skill_user.user_id = ? AND skill_user.proficiency = ?")
        assert values == (1, "expert")

    def test_where_in_pivot_and_negations(self):
        query = (User(id=1).related("skills").query()
                 .where_in_pivot("skill_id", [1, 2])
                 .where_not_pivot("proficiency", "novice"))
        assert _sql(query)[0].endswith(
            "WHERE skill_user.user_id = ? AND skill_user.skill_id IN (?, ?) "
            "AND NOT (skill_user.proficiency = ?)"
        )

    def test_where_not_pivot_with_in_lookup(self):
        """Negated pivot IN lookups stay on the pivot table."""
        query = User(id=1).related("skills").query().where_not_pivot(proficiency__in=["low", "mid"])
        assert _sql(query) == (
            "SELECT skills.*, skill_user.user_id AS pivot_user_id, skill_user.skill_id AS pivot_skill_id, "
            "skill_user.proficiency AS pivot_proficiency FROM skills "
            "INNER JOIN skill_user ON skills.id = skill_user.skill_id "
            "WHERE skill_user.user_id = ? AND skill_user.proficiency NOT IN (?, ?)",
            (1, "low", "mid"),
        )

    def test_where_pivot_without_pivot_table(self):
        with pytest.raises(ValueError, match='"posts" has no pivot table'):
            User(id=1).related("posts").query().where_pivot("role", "x")

    def test_select_pivot(self):
        class Squad(Model):
            id = column(is_primary=True)
            skills = has_many(lambda: Post, foreign_key="userId")

        with pytest.raises(ValueError, match="has no pivot table"):
            Squad(id=1).related("skills").query().select_pivot("role")
        query = User(id=1).related("skills").query().select_pivot("created_at")
        assert "skill_user.created_at AS pivot_created_at" in _sql(query)[0]


class TestEager:

    def test_in_over_distinct_owner_values(self):
        owners = [User(id=1), User(id=2), User(id=1), User(id=None)]
        query = User.posts.many_owner_query(owners)
        assert isinstance(query, RelationQueryBuilder)
        assert query.mode == RelationQueryMode.EAGER
        assert _sql(query) == (
            "SELECT * FROM posts WHERE posts.user_id IN (?, ?) AND posts.deleted_at IS NULL", (1, 2)
        )

    def test_user_selection_keeps_matching_keys(self):
        query = User.posts.many_owner_query([User(id=1), User(id=2)]).select("title")
        assert _sql(query)[0].startswith("SELECT posts.title, posts.user_id FROM posts")

    def test_selection_already_carrying_keys(self):
        query = User.posts.many_owner_query([User(id=1)]).select("title", "userId")
        assert _sql(query)[0].startswith("SELECT posts.title, posts.user_id FROM posts")

    def test_belongs_to_eager(self):
        owners = [Profile(id=1, userId=4), Profile(id=2, userId=5)]
        assert _sql(Profile.user.many_owner_query(owners)) == (
            "SELECT * FROM users WHERE users.id IN (?, ?)", (4, 5)
        )

    def test_missing_key_names_the_preload(self):
        with pytest.raises(MissingKeyValueError) as info:
            User.posts.many_owner_query([User(username="virk")])
        assert str(info.value) == (
            'E_MISSING_KEY_VALUE: Cannot preload "posts", value of "User.id" is undefined. '
            'Make sure to select "id" in the parent query'
        )


class TestOnQueryHook:

    def test_hook_runs_before_scopes_and_user_predicates(self):
        class Blogger(Model, table="users"):
            id = column(is_primary=True)
            published = has_many(lambda: Post, foreign_key="userId",
                                 on_query=lambda query: query.where("title", "!=", "draft"))

        query = Blogger(id=1).related("published").query().or_where("title", "x")
        assert _sql(query) == (
            "SELECT * FROM posts WHERE posts.user_id = ? AND posts.title != ? "
            "AND posts.deleted_at IS NULL AND (posts.title = ?)",
            (1, "draft", "x"),
        )

    def test_hook_is_not_applied_to_existence_queries(self):
        class Writer(Model, table="users"):
            id = column(is_primary=True)
            drafts = has_many(lambda: Post, foreign_key="userId",
                              on_query=lambda query: query.where("title", "draft"))

        sql = Writer.query().has("drafts").to_statement().sql
        assert "draft" not in sql
        assert "?" not in sql

    def test_hook_must_return_a_builder(self):
        class Novelist(Model, table="users"):
            id = column(is_primary=True)
            stories = has_many(lambda: Post, foreign_key="userId", on_query=lambda query: None)

        with pytest.raises(TypeError, match="must return"):
            Novelist(id=1).related("stories").query()


class TestWrites:

    def test_has_many_through_update_uses_a_subquery(self):
        sql, values = Country(id=5).related("posts").query().to_statement("update").compile_update(
            {"title": "x"}
        )
        assert sql == (
            "UPDATE posts SET title = ? WHERE posts.user_id IN "
            "(SELECT users.id FROM users WHERE users.country_id = ?) AND posts.deleted_at IS NULL"
        )
        assert values == ("x", 5)

    def test_pivot_relation_delete_targets_the_pivot(self):
        query = User(id=1).related("skills").query()
        sql, values = query.to_statement("delete").compile_delete()
        assert sql == "DELETE FROM skill_user WHERE skill_user.user_id = ?"
        assert values == (1,)
