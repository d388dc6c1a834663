"""
Field Descriptors
=================

Declarative column metadata and the rules that turn a caller's field
schema into the final schema of a registered table.

A field can be declared three ways:

    {"name": "string"}                                  # type name
    {"name": FieldType.STRING}                          # enum member
    {"name": {"type": "string", "nullable": False}}     # full descriptor

Every table also carries three system fields (id, createdAt, updatedAt).
See merge_fields() for how they combine with the caller's fields.
"""

from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    Text,
)

from madatabase.core.constants import (
    FIELD_CREATED_AT,
    FIELD_ID,
    FIELD_UPDATED_AT,
    DefaultValue,
    FieldType,
)
from madatabase.core.exceptions import SchemaError


DEFAULT_STRING_LENGTH = 255

PYTHON_TYPES = {
    str: FieldType.STRING,
    int: FieldType.INTEGER,
    float: FieldType.FLOAT,
    bool: FieldType.BOOLEAN,
    Decimal: FieldType.DECIMAL,
    datetime: FieldType.DATETIME,
    date: FieldType.DATE,
    dict: FieldType.JSON,
    list: FieldType.JSON,
}


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class FieldSpec(BaseModel):
    """
    Metadata for one column.

    Attributes:
        type: Semantic column type
        nullable: Whether NULL is allowed (primary keys never are)
        unique: Add a UNIQUE constraint
        primary_key: Part of the primary key
        auto_increment: Let the engine assign values (integer keys)
        index: Create an index on the column
        default: Literal value, zero-argument callable or DefaultValue.NOW
        length: Maximum length for string fields
        comment: Column comment
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: FieldType
    nullable: bool = True
    unique: bool = False
    primary_key: bool = False
    auto_increment: bool = False
    index: bool = False
    default: Any = None
    length: Optional[int] = None
    comment: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, type) and v in PYTHON_TYPES:
            return PYTHON_TYPES[v]
        if isinstance(v, str) and not isinstance(v, FieldType):
            return v.strip().lower()
        return v

    @classmethod
    def coerce(cls, name: str, value: Any) -> "FieldSpec":
        """
        Build a FieldSpec from any supported declaration form.

        Raises:
            SchemaError: If the declaration cannot be understood
        """
        if isinstance(value, FieldSpec):
            return value
        if isinstance(value, (str, type)):
            value = {"type": value}
        if not isinstance(value, Mapping):
            raise SchemaError(f"Field '{name}' has an unsupported declaration: {value!r}")
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            raise SchemaError(f"Field '{name}' is invalid: {e}") from e

    @property
    def is_now_default(self) -> bool:
        if self.default is DefaultValue.NOW:
            return True
        return self.type in (FieldType.DATE, FieldType.DATETIME) and self.default == DefaultValue.NOW.value


class TableOptions(BaseModel):
    """
    Table-level registration options.

    Attributes:
        storage_name: Physical table name (default: lower-cased table name)
        timestamps: Add the createdAt/updatedAt system fields
        comment: Table comment
    """

    model_config = ConfigDict(frozen=True)

    storage_name: Optional[str] = None
    timestamps: bool = True
    comment: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "TableOptions":
        if value is None:
            return cls()
        if isinstance(value, TableOptions):
            return value
        if not isinstance(value, Mapping):
            raise SchemaError(f"Table options must be a mapping, got {type(value).__name__}")
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            raise SchemaError(f"Invalid table options: {e}") from e


# ========================================
# Schema Merging
# ========================================

def system_fields(timestamps: bool = True) -> Dict[str, FieldSpec]:
    """
    The fields every table gets without declaring them.

    Args:
        timestamps: Include createdAt/updatedAt
    """
    fields = {
        FIELD_ID: FieldSpec(
            type=FieldType.INTEGER,
            primary_key=True,
            auto_increment=True,
            nullable=False,
        ),
    }
    if timestamps:
        fields[FIELD_CREATED_AT] = FieldSpec(type=FieldType.DATETIME, default=DefaultValue.NOW)
        fields[FIELD_UPDATED_AT] = FieldSpec(type=FieldType.DATETIME, default=DefaultValue.NOW)
    return fields


def normalize_fields(fields: Optional[Mapping[str, Any]]) -> Dict[str, FieldSpec]:
    """Coerce every declaration in a caller schema to a FieldSpec."""
    if fields is None:
        return {}
    if not isinstance(fields, Mapping):
        raise SchemaError(f"Field schema must be a mapping, got {type(fields).__name__}")

    normalized = {}
    for name, value in fields.items():
        if not isinstance(name, str) or not name:
            raise SchemaError(f"Field names must be non-empty strings, got {name!r}")
        normalized[name] = FieldSpec.coerce(name, value)
    return normalized


def merge_fields(
    system_defaults: Mapping[str, FieldSpec],
    caller_fields: Mapping[str, FieldSpec],
) -> Dict[str, FieldSpec]:
    """
    Merge caller fields over the system defaults.

    Caller entries are applied last, so a caller field named like a system
    field replaces the system descriptor entirely. The replaced field keeps
    its original position; new caller fields follow the system fields in
    declaration order.

    Example:
        merge_fields(system_fields(), {"id": FieldSpec(type="string", primary_key=True)})
        # id is now a string primary key, createdAt/updatedAt unchanged
    """
    merged = dict(system_defaults)
    for name, spec in caller_fields.items():
        merged[name] = spec
    return merged


# ========================================
# Column Construction
# ========================================

def column_type(spec: FieldSpec):
    """SQLAlchemy type for a field descriptor."""
    if spec.type is FieldType.STRING:
        return String(spec.length or DEFAULT_STRING_LENGTH)
    if spec.type is FieldType.DATETIME:
        return DateTime(timezone=True)

    return {
        FieldType.TEXT: Text,
        FieldType.INTEGER: Integer,
        FieldType.BIGINT: BigInteger,
        FieldType.FLOAT: Float,
        FieldType.DECIMAL: Numeric,
        FieldType.BOOLEAN: Boolean,
        FieldType.DATE: Date,
        FieldType.JSON: JSON,
    }[spec.type]()


def build_column(name: str, spec: FieldSpec) -> Column:
    """Create the SQLAlchemy Column for one field."""
    kwargs: Dict[str, Any] = {
        "primary_key": spec.primary_key,
        "nullable": spec.nullable and not spec.primary_key,
        "unique": spec.unique,
        "index": spec.index,
        "comment": spec.comment,
    }

    if spec.primary_key:
        kwargs["autoincrement"] = True if spec.auto_increment else "auto"

    if spec.is_now_default:
        kwargs["default"] = utcnow
    elif spec.default is not None:
        kwargs["default"] = spec.default

    return Column(name, column_type(spec), **kwargs)
