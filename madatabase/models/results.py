"""
Result Envelopes
================

Records come back from the engine as plain dictionaries. Paginated
searches and raw statements wrap them with the metadata computed here.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List


Record = Dict[str, Any]


def row_to_dict(row) -> Record:
    """Convert a SQLAlchemy Row into a plain dictionary."""
    return dict(row._mapping)


@dataclass
class PaginationResult:
    """
    One page of search results.

    Attributes:
        data: Records on this page
        total: Number of records matching the condition
        page: 1-based page number
        pages: Number of pages, ceil(total / page_size)
        has_more: True when page < pages
    """

    data: List[Record]
    total: int
    page: int
    pages: int
    has_more: bool

    @classmethod
    def build(cls, data: List[Record], total: int, page: int, page_size: int) -> "PaginationResult":
        pages = math.ceil(total / page_size) if total else 0
        return cls(data=data, total=total, page=page, pages=pages, has_more=page < pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "total": self.total,
            "page": self.page,
            "pages": self.pages,
            "hasMore": self.has_more,
        }


@dataclass
class QueryResult:
    """Rows and statement metadata returned by a raw query."""

    results: List[Record] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
