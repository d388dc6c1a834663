"""
Data access layer (Repository pattern).

The schema registry and the engine-bound table handles it hands out.
"""

from madatabase.repositories.table import TableHandle
from madatabase.repositories.registry import SchemaRegistry

__all__ = [
    "TableHandle",
    "SchemaRegistry",
]
