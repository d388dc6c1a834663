"""
Error types raised by the data-access layer.

Storage engine failures are not wrapped: they surface as the original
SQLAlchemy exception. ``EngineError`` is exported so callers can catch
them without importing SQLAlchemy themselves.
"""

from sqlalchemy.exc import SQLAlchemyError

EngineError = SQLAlchemyError


class MaDatabaseError(Exception):
    """Base class for errors raised by this library."""


class TableNotRegistered(MaDatabaseError, LookupError):
    """An operation referenced a table that was never registered."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' not found")


class TranslationError(MaDatabaseError, ValueError):
    """A condition specification could not be translated into a predicate."""


class SchemaError(MaDatabaseError, ValueError):
    """A table definition contains a malformed field declaration."""
