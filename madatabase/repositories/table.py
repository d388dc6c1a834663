"""
Registered Table Handle
=======================

The engine-bound side of a registered table. A TableHandle owns one
SQLAlchemy Table and runs create/read/update/delete statements against it,
each inside its own session scope.

Handles take canonical predicates, never raw caller conditions: translation
happens in the facade before a handle is reached.
"""

from typing import Any, Callable, ContextManager, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import Table, and_, delete, func, insert, select, update
from sqlalchemy.orm import Session

from madatabase.core.constants import FIELD_UPDATED_AT, FieldType
from madatabase.core.exceptions import SchemaError
from madatabase.models.fields import FieldSpec, TableOptions, utcnow
from madatabase.models.results import Record, row_to_dict
from madatabase.services.conditions import (
    MATCH_ALL,
    Predicate,
    compile_predicate,
    resolve_columns,
    resolve_order,
)


SessionScope = Callable[[], ContextManager[Session]]


class TableHandle:
    """
    Live, engine-bound representation of a table definition.

    Attributes:
        name: Logical table name used by callers
        table: SQLAlchemy Table (named by the storage name)
        fields: Final field descriptors, system fields included
        options: Registration options
        associations: Relationship metadata attached by other components
    """

    def __init__(
        self,
        name: str,
        table: Table,
        fields: Dict[str, FieldSpec],
        session_scope: SessionScope,
        options: Optional[TableOptions] = None,
    ):
        self.name = name
        self.table = table
        self.fields = fields
        self.options = options or TableOptions()
        self.associations: Dict[str, Dict[str, Any]] = {}
        self._session_scope = session_scope

    def __repr__(self) -> str:
        return f"<TableHandle(name='{self.name}', storage='{self.storage_name}', fields={len(self.fields)})>"

    @property
    def storage_name(self) -> str:
        return self.table.name

    @property
    def primary_key(self) -> list:
        return list(self.table.primary_key.columns)

    def add_association(self, name: str, target: str, kind: str, **meta) -> None:
        """
        Record relationship metadata on this handle.

        The layer does not resolve relationships; the entry is only kept so
        describe() can report it.

        Example:
            users.add_association("posts", target="Post", kind="hasMany", foreign_key="userId")
        """
        self.associations[name] = {"target": target, "kind": kind, **meta}

    # ========================================
    # Writes
    # ========================================

    def create(self, record: Mapping[str, Any]) -> Record:
        """Insert one row and return it as stored, generated values included."""
        with self._session_scope() as session:
            return self._insert(session, record)

    def bulk_create(self, records: Sequence[Mapping[str, Any]]) -> List[Record]:
        """Insert rows in one transaction; any failure rolls back every row."""
        with self._session_scope() as session:
            return [self._insert(session, record) for record in records]

    def update(self, values: Mapping[str, Any], predicate: Predicate) -> int:
        """
        Update matching rows.

        updatedAt is set to the current time unless the caller supplies it.

        Returns:
            Number of affected rows
        """
        values = dict(values)
        if self._tracks_updates() and FIELD_UPDATED_AT not in values:
            values[FIELD_UPDATED_AT] = utcnow()
        if not values:
            return 0

        stmt = self._where(update(self.table), predicate).values(**values)
        with self._session_scope() as session:
            return session.execute(stmt).rowcount

    def destroy(self, predicate: Predicate) -> int:
        """Delete matching rows and return how many were removed."""
        stmt = self._where(delete(self.table), predicate)
        with self._session_scope() as session:
            return session.execute(stmt).rowcount

    # ========================================
    # Reads
    # ========================================

    def find_all(
        self,
        predicate: Predicate = MATCH_ALL,
        order_by: Any = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> List[Record]:
        columns = resolve_columns(self.table, fields) if fields is not None else [self.table]
        stmt = self._where(select(*columns), predicate)

        ordering = resolve_order(self.table, order_by)
        if ordering:
            stmt = stmt.order_by(*ordering)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)

        with self._session_scope() as session:
            return [row_to_dict(row) for row in session.execute(stmt)]

    def find_one(
        self,
        predicate: Predicate = MATCH_ALL,
        order_by: Any = None,
        offset: Optional[int] = None,
    ) -> Optional[Record]:
        rows = self.find_all(predicate, order_by=order_by, limit=1, offset=offset)
        return rows[0] if rows else None

    def find_by_primary_key(self, key: Any) -> Optional[Record]:
        """
        Fetch a row by primary key.

        Args:
            key: Key value, or a tuple of values for composite keys
        """
        stmt = select(self.table).where(self._key_clause(key))
        with self._session_scope() as session:
            row = session.execute(stmt).first()
        return row_to_dict(row) if row else None

    def count(self, predicate: Predicate = MATCH_ALL) -> int:
        stmt = self._where(select(func.count()).select_from(self.table), predicate)
        with self._session_scope() as session:
            return session.execute(stmt).scalar_one()

    # ========================================
    # Helpers
    # ========================================

    def _where(self, stmt, predicate: Predicate):
        clause = compile_predicate(predicate, self.table)
        return stmt if clause is None else stmt.where(clause)

    def _tracks_updates(self) -> bool:
        spec = self.fields.get(FIELD_UPDATED_AT)
        return spec is not None and spec.type is FieldType.DATETIME

    def _key_clause(self, key: Any):
        columns = self.primary_key
        if not columns:
            raise SchemaError(f"Table '{self.name}' has no primary key")
        if len(columns) == 1:
            return columns[0] == key
        if not isinstance(key, (list, tuple)) or len(key) != len(columns):
            raise SchemaError(f"Table '{self.name}' has a composite key of {len(columns)} columns")
        return and_(*(column == value for column, value in zip(columns, key)))

    def _insert(self, session: Session, record: Mapping[str, Any]) -> Record:
        stmt = insert(self.table)
        if record:
            stmt = stmt.values(**dict(record))
        result = session.execute(stmt)
        key = result.inserted_primary_key
        if key is None or any(value is None for value in key):
            return dict(record)

        row = session.execute(select(self.table).where(self._key_clause(
            key[0] if len(key) == 1 else tuple(key)
        ))).first()
        return row_to_dict(row)
