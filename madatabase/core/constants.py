"""
Library-wide constants.

Centralize magic strings here: field types, condition operators and the
names of the system fields every table carries.
"""

from enum import Enum


# ========================================
# Field Types
# ========================================

class FieldType(str, Enum):
    """
    Semantic column types a field descriptor can declare.

    Inherits from str so schemas can be written with plain strings:
        {"name": "string"} is the same as {"name": FieldType.STRING}
    """

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIGINT = "bigint"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"


class DefaultValue(str, Enum):
    """Symbolic column defaults."""

    NOW = "now"
    """Current UTC time, evaluated on insert."""


# ========================================
# Condition Operators
# ========================================

class Operator(str, Enum):
    """
    Atomic constraint kinds of the canonical predicate.

    The values double as the operator names accepted in operator maps:
        {"age": {"gte": 18, "lte": 65}}
    """

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    IN = "in"
    BETWEEN = "between"


# ========================================
# System Fields
# ========================================

FIELD_ID = "id"
FIELD_CREATED_AT = "createdAt"
FIELD_UPDATED_AT = "updatedAt"

# ========================================
# Pagination
# ========================================

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
