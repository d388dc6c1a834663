"""
Pytest configuration and fixtures for madatabase tests.
"""

import pytest

from madatabase import Database
from madatabase.config import Settings


@pytest.fixture
def db():
    """Fresh in-memory database."""
    database = Database(Settings(storage=":memory:"))
    yield database
    database.close()


@pytest.fixture
def people_db(db):
    """Database with a synced 'Person' table."""
    db.create_table("Person", {
        "name": {"type": "string", "nullable": False},
        "email": {"type": "string", "unique": True},
        "age": "integer",
        "active": {"type": "boolean", "default": True},
    })
    assert db.sync_tables()
    return db


@pytest.fixture
def sample_people():
    """Sample rows for the Person table."""
    return [
        {"name": "Alice", "email": "alice@example.com", "age": 30, "active": True},
        {"name": "ALINA", "email": "alina@example.com", "age": 17, "active": False},
        {"name": "Bob", "email": "bob@example.com", "age": 45, "active": True},
        {"name": "Carol", "email": "carol@example.com", "age": 65, "active": True},
        {"name": "Dave", "email": "dave@example.com", "age": 70, "active": False},
    ]


@pytest.fixture
def seeded_db(people_db, sample_people):
    people_db.insert_many("Person", sample_people)
    return people_db


@pytest.fixture
def crowd_db(people_db):
    """25 people aged 20..44, all matching {"active": True}."""
    people_db.insert_many("Person", [
        {"name": f"person-{i:02d}", "email": f"p{i}@example.com", "age": 20 + i, "active": True}
        for i in range(25)
    ])
    people_db.insert("Person", {"name": "inactive", "email": "x@example.com", "age": 99, "active": False})
    return people_db
