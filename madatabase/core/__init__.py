"""Core constants and error types."""

from madatabase.core.constants import FieldType, DefaultValue, Operator
from madatabase.core.exceptions import (
    EngineError,
    MaDatabaseError,
    TableNotRegistered,
    TranslationError,
    SchemaError,
)

__all__ = [
    "FieldType",
    "DefaultValue",
    "Operator",
    "EngineError",
    "MaDatabaseError",
    "TableNotRegistered",
    "TranslationError",
    "SchemaError",
]
