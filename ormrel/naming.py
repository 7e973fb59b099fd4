"""Naming conventions used to default table names, column names and relation keys."""

import inflection


def lower_camel(name: str) -> str:
    """``BlogPost`` / ``blog_post`` -> ``blogPost``."""
    return inflection.camelize(inflection.underscore(name), uppercase_first_letter=False)


def upper_first(name: str) -> str:
    return name[:1].upper() + name[1:]


class NamingStrategy:
    """Default naming conventions.

    Subclass and pass ``naming=MyStrategy()`` as a model class keyword to
    change how an entity's names are derived.
    """

    def table_name(self, model_name: str) -> str:
        """``UserProfile`` -> ``user_profiles``."""
        return inflection.pluralize(inflection.underscore(model_name))

    def column_name(self, attribute: str) -> str:
        """``countryId`` -> ``country_id``."""
        return inflection.underscore(attribute)

    def foreign_key(self, owner_name: str, local_key: str) -> str:
        """Logical name of a foreign key referencing ``owner_name`` by ``local_key``.

        ``("Country", "id")`` -> ``countryId``.
        """
        return lower_camel(owner_name) + upper_first(local_key)

    def pivot_table(self, owner_table: str, related_table: str) -> str:
        """``("users", "skills")`` -> ``skill_user``."""
        names = sorted(
            inflection.singularize(inflection.underscore(table))
            for table in (owner_table, related_table)
        )
        return "_".join(names)

    def pivot_foreign_key(self, table: str, primary_key: str) -> str:
        """``("users", "id")`` -> ``user_id``."""
        return inflection.underscore(f"{inflection.singularize(table)}_{primary_key}")

    def morph_type_column(self, table: str) -> str:
        return f"{inflection.singularize(inflection.underscore(table))}_type"

    def morph_type_attribute(self, morph_name: str) -> str:
        """``imageable`` -> ``imageableType``."""
        return lower_camel(morph_name) + "Type"

    def morph_pivot_table(self, morph_name: str) -> str:
        """``taggable`` -> ``taggables``."""
        return inflection.pluralize(inflection.underscore(morph_name))


default_naming = NamingStrategy()
