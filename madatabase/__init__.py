"""
madatabase
==========

A small data-access layer: register tables from a declarative field schema,
then insert, find, update, delete and search them without writing SQL.
"""

from madatabase.core.constants import DefaultValue, FieldType, Operator
from madatabase.core.exceptions import (
    EngineError,
    MaDatabaseError,
    SchemaError,
    TableNotRegistered,
    TranslationError,
)
from madatabase.database.database import Database
from madatabase.models.fields import FieldSpec, TableOptions
from madatabase.models.results import PaginationResult, QueryResult
from madatabase.repositories.table import TableHandle
from madatabase.services.conditions import (
    ExactMatch,
    OperatorMap,
    Paginated,
    Predicate,
    TextMatch,
    translate,
)

__version__ = "0.1.0"

__all__ = [
    "Database",
    "TableHandle",
    "FieldSpec",
    "FieldType",
    "DefaultValue",
    "TableOptions",
    "Operator",
    "ExactMatch",
    "TextMatch",
    "OperatorMap",
    "Paginated",
    "Predicate",
    "translate",
    "PaginationResult",
    "QueryResult",
    "EngineError",
    "MaDatabaseError",
    "SchemaError",
    "TableNotRegistered",
    "TranslationError",
]
