"""
Models package.

Field descriptors for declarative table schemas and the result
envelopes returned by the CRUD facade.
"""

from madatabase.models.fields import (
    FieldSpec,
    TableOptions,
    build_column,
    merge_fields,
    normalize_fields,
    system_fields,
)
from madatabase.models.results import (
    PaginationResult,
    QueryResult,
    Record,
    row_to_dict,
)

__all__ = [
    "FieldSpec",
    "TableOptions",
    "build_column",
    "merge_fields",
    "normalize_fields",
    "system_fields",
    "PaginationResult",
    "QueryResult",
    "Record",
    "row_to_dict",
]
