"""
Database Session Management
============================

Builds the SQLAlchemy engine for a Settings instance and scopes sessions.
"""

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from madatabase.config import Settings
from madatabase.repositories.table import SessionScope


def create_db_engine(settings: Settings) -> Engine:
    """Create and configure the database engine."""
    database_url = settings.url

    # SQLite-specific configuration
    if database_url.startswith("sqlite"):
        if settings.is_memory:
            # One shared connection, otherwise every session sees an empty database
            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=settings.logging,
            )
        else:
            # Ensure data directory exists
            if ":///" in database_url:
                db_dir = os.path.dirname(database_url.split(":///")[1])
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)

            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                echo=settings.logging,
            )

        # Enable foreign keys for SQLite
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    else:
        engine = create_engine(database_url, echo=settings.logging, pool_pre_ping=True)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_session_scope(session_factory: sessionmaker) -> SessionScope:
    """
    Build a context manager that yields sessions from a factory.

    Usage:
        session_scope = make_session_scope(SessionLocal)
        with session_scope() as session:
            session.execute(...)
        # committed on success, rolled back and re-raised on error
    """

    @contextmanager
    def session_scope() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_scope
