import os
import pytest
from ormrel.connection import connect, get_connection


SCHEMA = (
    "CREATE TABLE countries (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, name TEXT)",
    "CREATE TABLE users (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, username TEXT, "
    "country_id INTEGER)",
    "CREATE TABLE profiles (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, user_id INTEGER, "
    "display_name TEXT)",
    "CREATE TABLE posts (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, user_id INTEGER, "
    "title TEXT NOT NULL, deleted_at TIMESTAMP)",
    "CREATE TABLE comments (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, post_id INTEGER, "
    "body TEXT)",
    "CREATE TABLE skills (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, name TEXT)",
    "CREATE TABLE skill_user (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, user_id INTEGER, "
    "skill_id INTEGER, proficiency TEXT)",
    "CREATE TABLE tags (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, name TEXT)",
    "CREATE TABLE taggables (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, tag_id INTEGER, "
    "taggable_id INTEGER, taggable_type TEXT)",
    "CREATE TABLE images (id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, url TEXT, "
    "imageable_id INTEGER, imageable_type TEXT)",
)


@pytest.fixture(scope="function")
def setup_db(request):
    """Setup a temporary file SQLite database for each test."""
    os.makedirs("/tmp/ormrel-tests", exist_ok=True)
    path = f"/tmp/ormrel-tests/test-{request.function.__module__}-{request.function.__name__}.sqlite3"
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    connect(f"sqlite:///{path}")
    yield


@pytest.fixture(scope="function")
def schema(setup_db):
    """Create the tables used by the models in tests/models.py."""
    connection = get_connection()
    for statement in SCHEMA:
        connection.execute_write(statement)
    yield connection
