"""Tests for ormrel.naming: default table, column, key and pivot names."""

from ormrel.naming import NamingStrategy, default_naming, lower_camel, upper_first


def test_lower_camel():
    assert lower_camel("Country") == "country"
    assert lower_camel("BlogPost") == "blogPost"
    assert lower_camel("blog_post") == "blogPost"


def test_upper_first():
    assert upper_first("id") == "Id"
    assert upper_first("uuid") == "Uuid"
    assert upper_first("") == ""


class TestNamingStrategy:

    def test_table_name_is_plural_snake_case(self):
        assert default_naming.table_name("User") == "users"
        assert default_naming.table_name("UserProfile") == "user_profiles"
        assert default_naming.table_name("Country") == "countries"

    def test_column_name_is_snake_case(self):
        assert default_naming.column_name("countryId") == "country_id"
        assert default_naming.column_name("username") == "username"

    def test_foreign_key(self):
        assert default_naming.foreign_key("Country", "id") == "countryId"
        assert default_naming.foreign_key("BlogPost", "uuid") == "blogPostUuid"

    def test_pivot_table_sorts_singular_names(self):
        assert default_naming.pivot_table("users", "skills") == "skill_user"
        assert default_naming.pivot_table("skills", "users") == "skill_user"

    def test_pivot_foreign_key(self):
        assert default_naming.pivot_foreign_key("users", "id") == "user_id"
        assert default_naming.pivot_foreign_key("countries", "id") == "country_id"

    def test_morph_names(self):
        assert default_naming.morph_pivot_table("taggable") == "taggables"
        assert default_naming.morph_type_column("users") == "user_type"
        assert default_naming.morph_type_attribute("imageable") == "imageableType"

    def test_subclass_overrides(self):
        """Overriding one convention leaves the others at their defaults."""
        class Prefixed(NamingStrategy):
            def table_name(self, model_name):
                return "app_" + super().table_name(model_name)

        assert Prefixed().table_name("User") == "app_users"
        assert Prefixed().column_name("countryId") == "country_id"
