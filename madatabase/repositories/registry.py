"""
Schema Registry
===============

Holds one canonical field schema per table name and hands out the
engine-bound TableHandle for it.

Registration is get-or-create: the first call for a name builds the table,
later calls return that same handle and ignore the schema they were given.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import MetaData, Table
from sqlalchemy.exc import ArgumentError, InvalidRequestError

from madatabase.core.constants import FIELD_ID
from madatabase.core.exceptions import SchemaError
from madatabase.models.fields import (
    TableOptions,
    build_column,
    merge_fields,
    normalize_fields,
    system_fields,
)
from madatabase.repositories.table import SessionScope, TableHandle

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Table registry owned by one Database instance.

    Attributes:
        metadata: SQLAlchemy MetaData holding every registered Table
    """

    def __init__(self, session_scope: SessionScope, metadata: Optional[MetaData] = None):
        self.metadata = metadata if metadata is not None else MetaData()
        self._session_scope = session_scope
        self._handles: Dict[str, TableHandle] = {}

    def __contains__(self, table_name: str) -> bool:
        return table_name in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def register(
        self,
        table_name: str,
        fields: Optional[Mapping[str, Any]] = None,
        options: Any = None,
    ) -> TableHandle:
        """
        Get or create the handle for a table.

        Args:
            table_name: Logical table name
            fields: Caller field schema (merged over id/createdAt/updatedAt)
            options: TableOptions or a mapping of its attributes

        Returns:
            The registered TableHandle (the existing one on re-registration)

        Raises:
            SchemaError: Malformed table name, field or options, or no primary key
        """
        if not isinstance(table_name, str) or not table_name.strip():
            raise SchemaError(f"Table names must be non-empty strings, got {table_name!r}")

        existing = self._handles.get(table_name)
        if existing is not None:
            logger.info(f"ℹ️ Table '{table_name}' already defined")
            return existing

        options = TableOptions.coerce(options)
        final_fields = merge_fields(system_fields(options.timestamps), normalize_fields(fields))
        if not any(spec.primary_key for spec in final_fields.values()):
            raise SchemaError(
                f"Table '{table_name}' has no primary key; "
                f"mark a field (e.g. '{FIELD_ID}') with primary_key=True"
            )
        storage_name = options.storage_name or table_name.lower()

        try:
            table = Table(
                storage_name,
                self.metadata,
                *(build_column(name, spec) for name, spec in final_fields.items()),
                comment=options.comment,
            )
        except (ArgumentError, InvalidRequestError) as e:
            raise SchemaError(f"Cannot define table '{table_name}': {e}") from e

        handle = TableHandle(table_name, table, final_fields, self._session_scope, options)
        self._handles[table_name] = handle
        logger.info(f"✅ Table '{table_name}' created")
        return handle

    def resolve(self, table_name: str) -> Optional[TableHandle]:
        """Handle for a table name, or None if it was never registered."""
        return self._handles.get(table_name)

    def list_tables(self) -> List[str]:
        """Registered table names in registration order."""
        return list(self._handles)

    def describe(self, table_name: str) -> Optional[Dict[str, Any]]:
        """
        Live description of a registered table.

        Returns:
            {"tableName", "attributes", "associations"} or None if unknown
        """
        handle = self._handles.get(table_name)
        if handle is None:
            return None
        return {
            "tableName": table_name,
            "attributes": dict(handle.fields),
            "associations": dict(handle.associations),
        }
