"""Database package."""

from madatabase.database.session import (
    create_db_engine,
    create_session_factory,
    make_session_scope,
)
from madatabase.database.database import Database

__all__ = [
    "Database",
    "create_db_engine",
    "create_session_factory",
    "make_session_scope",
]
