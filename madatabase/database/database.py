"""
Database Facade
===============

One object that owns an engine, a schema registry and the CRUD surface
over every registered table.

Usage:
    from madatabase import Database

    with Database(storage=":memory:") as db:
        db.create_table("User", {"name": "string", "age": "integer"})
        db.sync_tables()

        user = db.insert("User", {"name": "Ada", "age": 36})
        adults = db.search_advanced("User", {"age": {"gte": 18}})
        page = db.search_paginated("User", {"age": {"gte": 18}}, page=1, page_size=20)

Every table operation resolves the table first and raises TableNotRegistered
before touching the engine. Conditions are translated before the engine is
touched as well, so TranslationError never leaves a partial write behind.
Engine errors are logged once and re-raised unchanged.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from madatabase.config import Settings, get_settings
from madatabase.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from madatabase.core.exceptions import TableNotRegistered
from madatabase.database.session import (
    create_db_engine,
    create_session_factory,
    make_session_scope,
)
from madatabase.models.results import PaginationResult, QueryResult, Record, row_to_dict
from madatabase.repositories.registry import SchemaRegistry
from madatabase.repositories.table import TableHandle
from madatabase.services.conditions import (
    ExactMatch,
    OperatorMap,
    Paginated,
    TextMatch,
    translate_paginated,
    translate_unpaged,
    translate_window,
)

logger = logging.getLogger(__name__)


class Database:
    """
    CRUD facade over a SQLAlchemy engine.

    Args:
        settings: Base settings (default: the global settings instance)
        **overrides: Per-instance overrides of any Settings field, e.g.
            Database(storage=":memory:", logging=True)
    """

    def __init__(self, settings: Optional[Settings] = None, **overrides):
        base = settings or get_settings()
        if overrides:
            base = Settings.model_validate({**base.model_dump(), **overrides})
        self.settings = base

        self.engine: Engine = create_db_engine(self.settings)
        self.SessionLocal = create_session_factory(self.engine)
        self.session_scope = make_session_scope(self.SessionLocal)
        self.registry = SchemaRegistry(self.session_scope)
        self._connected = False

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"<Database(dialect='{self.settings.dialect}', tables={len(self.registry)}, {state})>"

    # ========================================
    # Connection Lifecycle
    # ========================================

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        """
        Check that the engine can reach the database.

        Returns:
            True on success. Failures are logged and reported as False,
            the database stays disconnected.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"❌ Unable to connect to database: {e}")
            return False

        self._connected = True
        logger.info("✅ Database connection established successfully")
        return True

    def close(self) -> None:
        """Release pooled connections. Safe to call more than once."""
        try:
            self.engine.dispose()
            logger.info("✅ Database connection closed")
        except SQLAlchemyError as e:
            logger.error(f"❌ Error closing database: {e}")
        finally:
            self._connected = False

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ========================================
    # Schema
    # ========================================

    def create_table(
        self,
        table_name: str,
        fields: Optional[Mapping[str, Any]] = None,
        options: Any = None,
    ) -> TableHandle:
        """Register a table (get-or-create). See SchemaRegistry.register()."""
        return self.registry.register(table_name, fields, options)

    def sync_tables(self, force: bool = False) -> bool:
        """
        Create every registered table that does not exist yet.

        Args:
            force: Drop the registered tables first (deletes their data!)

        Returns:
            True on success, False if the engine rejected the DDL
        """
        try:
            if force:
                self.registry.metadata.drop_all(bind=self.engine)
            self.registry.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"❌ Error syncing tables: {e}")
            return False

        logger.info("✅ All tables synced successfully")
        return True

    def get_table_info(self, table_name: str) -> Optional[Dict[str, Any]]:
        return self.registry.describe(table_name)

    def get_tables(self) -> List[str]:
        return self.registry.list_tables()

    def get_model(self, table_name: str) -> Optional[TableHandle]:
        return self.registry.resolve(table_name)

    def get_engine(self) -> Engine:
        return self.engine

    # ========================================
    # CRUD
    # ========================================

    def insert(self, table_name: str, data: Mapping[str, Any]) -> Record:
        """Insert one record and return it with its generated fields."""
        handle = self._require(table_name)
        with self._reported(f"inserting into '{table_name}'"):
            record = handle.create(data)
        logger.info(f"✅ Data inserted into '{table_name}'")
        return record

    def insert_many(self, table_name: str, data: Sequence[Mapping[str, Any]]) -> List[Record]:
        """
        Insert records in one transaction.

        Either every record is created or none is. An empty sequence
        returns [] without touching the engine.
        """
        handle = self._require(table_name)
        if not data:
            return []
        with self._reported(f"bulk inserting into '{table_name}'"):
            records = handle.bulk_create(data)
        logger.info(f"✅ {len(records)} records inserted into '{table_name}'")
        return records

    def find(
        self,
        table_name: str,
        condition: Any = None,
        order_by: Any = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Record]:
        """
        Records matching a condition (all records when condition is None).

        A Paginated condition sets limit and offset itself.
        """
        handle = self._require(table_name)
        predicate, page_offset, page_limit = translate_window(condition)
        if page_limit is not None:
            offset, limit = page_offset, page_limit
        with self._reported(f"finding records in '{table_name}'"):
            return handle.find_all(predicate, order_by=order_by, limit=limit, offset=offset)

    def find_one(self, table_name: str, condition: Any = None, order_by: Any = None) -> Optional[Record]:
        """First matching record; a Paginated condition picks the first record of that page."""
        handle = self._require(table_name)
        predicate, offset, _ = translate_window(condition)
        with self._reported(f"finding record in '{table_name}'"):
            return handle.find_one(predicate, order_by=order_by, offset=offset)

    def find_by_id(self, table_name: str, id: Any) -> Optional[Record]:
        handle = self._require(table_name)
        with self._reported(f"finding record by ID in '{table_name}'"):
            return handle.find_by_primary_key(id)

    def update(self, table_name: str, data: Mapping[str, Any], condition: Any) -> int:
        """
        Update records matching a condition.

        Returns:
            Number of affected rows (0 when nothing matched)

        Raises:
            TranslationError: For Paginated conditions (writes have no pages)
        """
        handle = self._require(table_name)
        predicate = translate_unpaged(condition, "update")
        with self._reported(f"updating records in '{table_name}'"):
            affected = handle.update(data, predicate)
        logger.info(f"✅ {affected} records updated in '{table_name}'")
        return affected

    def delete(self, table_name: str, condition: Any) -> int:
        """Delete records matching a condition and return how many went."""
        handle = self._require(table_name)
        predicate = translate_unpaged(condition, "delete")
        with self._reported(f"deleting records from '{table_name}'"):
            deleted = handle.destroy(predicate)
        logger.info(f"✅ {deleted} records deleted from '{table_name}'")
        return deleted

    def count(self, table_name: str, condition: Any = None) -> int:
        handle = self._require(table_name)
        predicate = translate_unpaged(condition, "count")
        with self._reported(f"counting records in '{table_name}'"):
            return handle.count(predicate)

    # ========================================
    # Search
    # ========================================

    def search(self, table_name: str, conditions: Mapping[str, Any]) -> List[Record]:
        """Exact match on every given field: {"age": 25, "active": True}."""
        return self.find(table_name, ExactMatch(conditions))

    def search_text(self, table_name: str, field: str, term: str) -> List[Record]:
        """Case-insensitive substring search on one field."""
        return self.find(table_name, TextMatch(field, term))

    def search_advanced(self, table_name: str, conditions: Mapping[str, Any]) -> List[Record]:
        """Operator search: {"age": {"gte": 18, "lte": 65}, "name": {"like": "A%"}}."""
        return self.find(table_name, OperatorMap(conditions))

    def search_paginated(
        self,
        table_name: str,
        condition: Any = None,
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> PaginationResult:
        """
        One page of matching records, ordered by primary key.

        Returns:
            PaginationResult with data, total, page, pages and has_more
        """
        handle = self._require(table_name)
        predicate, offset, limit = translate_paginated(Paginated(condition, page, page_size))
        order_by = [column.name for column in handle.primary_key] or None

        with self._reported(f"paginating records in '{table_name}'"):
            total = handle.count(predicate)
            data = handle.find_all(predicate, order_by=order_by, limit=limit, offset=offset)

        return PaginationResult.build(data, total=total, page=page, page_size=page_size)

    def search_fields(
        self,
        table_name: str,
        condition: Any,
        fields: Sequence[str],
    ) -> List[Record]:
        """Matching records reduced to the listed fields. Paginated conditions return one page."""
        handle = self._require(table_name)
        predicate, offset, limit = translate_window(condition)
        with self._reported(f"finding records in '{table_name}'"):
            return handle.find_all(predicate, limit=limit, offset=offset, fields=fields)

    # ========================================
    # Raw SQL
    # ========================================

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> QueryResult:
        """
        Run a raw statement with optional named parameters.

        No translation or table checks happen here; the statement goes
        to the engine as written.

        Example:
            db.query("SELECT name FROM user WHERE age > :age", {"age": 30})
        """
        with self._reported("executing raw query"):
            with self.session_scope() as session:
                result = session.execute(text(sql), dict(params or {}))
                if result.returns_rows:
                    columns = list(result.keys())
                    rows = [row_to_dict(row) for row in result]
                else:
                    columns, rows = [], []
                metadata = {"rowcount": result.rowcount, "columns": columns}
        return QueryResult(results=rows, metadata=metadata)

    # ========================================
    # Helpers
    # ========================================

    def _require(self, table_name: str) -> TableHandle:
        handle = self.registry.resolve(table_name)
        if handle is None:
            raise TableNotRegistered(table_name)
        return handle

    @contextmanager
    def _reported(self, action: str) -> Generator[None, None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"❌ Error {action}: {e}")
            raise
