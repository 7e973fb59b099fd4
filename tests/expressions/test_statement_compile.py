"""Tests for ormrel.statement: SELECT rendering and the UPDATE/DELETE/INSERT/COUNT variants."""

import pytest

from ormrel.dialects import SqliteDialect, SqlserverDialect
from ormrel.expressions import RawExpression, TableExpression
from ormrel.statement import Statement, compile_insert


@pytest.fixture
def users():
    return TableExpression(name="users")


class TestSelect:

    def test_defaults_to_star(self, users):
        assert Statement(table=users).sql == "SELECT * FROM users"

    def test_full_statement(self, users):
        posts = TableExpression(name="posts")
        statement = (
            Statement(table=users)
            .select(users.all_columns)
            .join(posts, users["id"] == posts["user_id"], kind="LEFT")
            .where(users["age"] > 18)
            .where(users["name"] == "virk", boolean="OR")
            .group_by(users["id"])
            .order_by(users["name"].desc)
            .limit(10)
            .offset(20)
        )
        assert statement.sql == (
            "SELECT users.* FROM users LEFT JOIN posts ON users.id = posts.user_id "
            "WHERE users.age > ? OR users.name = ? GROUP BY users.id ORDER BY users.name DESC "
            "LIMIT 10 OFFSET 20"
        )
        assert statement.values == (18, "virk")

    def test_builder_is_immutable(self, users):
        """Builder methods return new statements and leave the original alone."""
        base = Statement(table=users)
        filtered = base.where(users["id"] == 1)
        assert base.clauses == []
        assert len(filtered.clauses) == 1

    def test_from_table_with_alias(self):
        statement = Statement.from_table("countries", alias="countries_reserved_0")
        assert statement.sql == "SELECT * FROM countries AS countries_reserved_0"

    def test_dialect_limit(self, users):
        statement = Statement(table=users, dialect=SqliteDialect()).offset(5)
        assert statement.sql == "SELECT * FROM users LIMIT -1 OFFSET 5"
        statement = Statement(table=users, dialect=SqlserverDialect()).order_by(users["id"].asc).limit(3)
        assert statement.sql == "SELECT * FROM users ORDER BY users.id ASC OFFSET 0 ROWS FETCH NEXT 3 ROWS ONLY"


class TestVariants:

    def test_count_statement(self, users):
        """Count statements drop ordering and paging."""
        statement = Statement(table=users).where(users["age"] > 1).order_by(users["id"].asc).limit(5)
        assert statement.count_statement().sql == "SELECT COUNT(*) AS total FROM users WHERE users.age > ?"
        assert statement.count_statement(alias=None).sql == "SELECT COUNT(*) FROM users WHERE users.age > ?"

    def test_compile_update(self, users):
        statement = Statement(table=users).where(users["id"] == 7)
        sql, values = statement.compile_update({"username": "romain", "deleted_at": RawExpression(text="CURRENT_TIMESTAMP")})
        assert sql == "UPDATE users SET username = ?, deleted_at = CURRENT_TIMESTAMP WHERE users.id = ?"
        assert values == ("romain", 7)

    def test_compile_delete(self, users):
        sql, values = Statement(table=users).where(users["id"].in_([1, 2])).compile_delete()
        assert sql == "DELETE FROM users WHERE users.id IN (?, ?)"
        assert values == (1, 2)

    def test_writes_reject_joins(self, users):
        """UPDATE and DELETE cannot be compiled from a joined statement."""
        posts = TableExpression(name="posts")
        statement = Statement(table=users).join(posts, users["id"] == posts["user_id"])
        with pytest.raises(ValueError, match="joins"):
            statement.compile_delete()
        with pytest.raises(ValueError, match="joins"):
            statement.compile_update({"username": "x"})


class TestInsert:

    def test_multiple_rows(self):
        sql, values = compile_insert("skill_user", [
            {"user_id": 1, "skill_id": 2},
            {"user_id": 1, "skill_id": 3},
        ])
        assert sql == "INSERT INTO skill_user (user_id, skill_id) VALUES (?, ?), (?, ?)"
        assert values == (1, 2, 1, 3)

    def test_returning(self):
        sql, _ = compile_insert("users", [{"username": "virk"}], returning="id")
        assert sql == "INSERT INTO users (username) VALUES (?) RETURNING id"

    def test_default_values(self):
        """An empty row inserts with DEFAULT VALUES."""
        assert compile_insert("users", [{}])[0] == "INSERT INTO users DEFAULT VALUES"

    def test_errors(self):
        with pytest.raises(ValueError, match="without rows"):
            compile_insert("users", [])
        with pytest.raises(ValueError, match="same columns"):
            compile_insert("users", [{"a": 1}, {"b": 2}])
