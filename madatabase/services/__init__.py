"""
Services Package
================

Available services:
- conditions: Condition translation into canonical predicates and SQL clauses
"""

from madatabase.services.conditions import (
    MATCH_ALL,
    Condition,
    Constraint,
    ExactMatch,
    OperatorMap,
    Paginated,
    Predicate,
    TextMatch,
    compile_predicate,
    paginate,
    to_condition,
    translate,
    translate_paginated,
    translate_unpaged,
    translate_window,
)

__all__ = [
    "MATCH_ALL",
    "Condition",
    "Constraint",
    "ExactMatch",
    "OperatorMap",
    "Paginated",
    "Predicate",
    "TextMatch",
    "compile_predicate",
    "paginate",
    "to_condition",
    "translate",
    "translate_paginated",
    "translate_unpaged",
    "translate_window",
]
