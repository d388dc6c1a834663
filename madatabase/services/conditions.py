"""
Condition Translator
====================

Turns caller-facing filter descriptions into one canonical predicate, and
the canonical predicate into SQLAlchemy expressions.

Four condition styles are supported:

    ExactMatch({"age": 25, "active": True})          # age = 25 AND active = true
    TextMatch("name", "ali")                         # name ILIKE '%ali%'
    OperatorMap({"age": {"gte": 18, "lte": 65}})     # age >= 18 AND age <= 65
    Paginated(<any of the above>, page=2, page_size=10)

Plain dictionaries are accepted wherever a condition is expected (see
to_condition()). Every style ends up as a Predicate, so the CRUD facade has
a single execution path no matter which style the caller used.

Translation problems raise TranslationError before the engine is touched.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import Table, and_
from sqlalchemy.sql.elements import ColumnElement

from madatabase.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, Operator
from madatabase.core.exceptions import TranslationError


LIKE_ESCAPE = "\\"


# ========================================
# Condition Specifications
# ========================================

@dataclass(frozen=True)
class ExactMatch:
    """Field -> literal value, combined with AND. Empty means match-all."""

    values: Mapping[str, Any]


@dataclass(frozen=True)
class TextMatch:
    """Case-insensitive substring match on one field."""

    field: str
    term: str


@dataclass(frozen=True)
class OperatorMap:
    """
    Field -> {operator -> value}.

    A scalar in place of the operator mapping is shorthand for {"eq": value}.
    """

    conditions: Mapping[str, Any]


@dataclass(frozen=True)
class Paginated:
    """Any other condition plus a 1-based page number and a page size."""

    condition: Any = None
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE


Condition = Union[ExactMatch, TextMatch, OperatorMap, Paginated]


# ========================================
# Canonical Predicate
# ========================================

@dataclass(frozen=True)
class Constraint:
    """One atomic constraint on one field."""

    field: str
    operator: Operator
    value: Any
    case_insensitive: bool = False
    escape: Optional[str] = None

    def __str__(self) -> str:
        symbol = {
            Operator.EQ: "=",
            Operator.NE: "!=",
            Operator.GT: ">",
            Operator.GTE: ">=",
            Operator.LT: "<",
            Operator.LTE: "<=",
            Operator.LIKE: "ILIKE" if self.case_insensitive else "LIKE",
            Operator.IN: "IN",
            Operator.BETWEEN: "BETWEEN",
        }[self.operator]
        if self.operator is Operator.BETWEEN:
            return f"{self.field} BETWEEN {self.value[0]!r} AND {self.value[1]!r}"
        return f"{self.field} {symbol} {self.value!r}"


@dataclass(frozen=True)
class Predicate:
    """Conjunction of atomic constraints. No constraints matches every row."""

    constraints: Tuple[Constraint, ...] = ()

    @property
    def matches_all(self) -> bool:
        return not self.constraints

    def __str__(self) -> str:
        if self.matches_all:
            return "TRUE"
        return " AND ".join(str(c) for c in self.constraints)


MATCH_ALL = Predicate()


# ========================================
# Translation
# ========================================

def to_condition(value: Any) -> Condition:
    """
    Normalize a caller-supplied condition.

    - None -> match-all exact match
    - condition objects are returned unchanged
    - a dict with at least one mapping value -> OperatorMap
    - any other dict -> ExactMatch
    """
    if value is None:
        return ExactMatch({})
    if isinstance(value, (ExactMatch, TextMatch, OperatorMap, Paginated)):
        return value
    if isinstance(value, Mapping):
        if any(isinstance(v, Mapping) for v in value.values()):
            return OperatorMap(value)
        return ExactMatch(value)
    raise TranslationError(f"Unsupported condition type: {type(value).__name__}")


def translate(spec: Any) -> Predicate:
    """
    Translate any condition specification into the canonical predicate.

    For Paginated conditions only the inner condition becomes the predicate;
    use paginate() or translate_paginated() for the offset and limit.

    Raises:
        TranslationError: Malformed field name, unknown operator, bad
            between/in value or invalid page values
    """
    condition = to_condition(spec)

    if isinstance(condition, ExactMatch):
        return _translate_exact(condition)
    if isinstance(condition, TextMatch):
        return _translate_text(condition)
    if isinstance(condition, OperatorMap):
        return _translate_operators(condition)

    paginate(condition)
    inner = to_condition(condition.condition)
    if isinstance(inner, Paginated):
        raise TranslationError("Paginated conditions cannot be nested")
    return translate(inner)


def paginate(spec: Paginated) -> Tuple[int, int]:
    """
    Offset and limit for a paginated condition.

    Returns:
        (offset, limit) = ((page - 1) * page_size, page_size)
    """
    page = _positive_int("page", spec.page)
    page_size = _positive_int("page_size", spec.page_size)
    return (page - 1) * page_size, page_size


def translate_paginated(spec: Paginated) -> Tuple[Predicate, int, int]:
    """Predicate, offset and limit of a paginated condition."""
    predicate = translate(spec)
    offset, limit = paginate(spec)
    return predicate, offset, limit


def translate_window(spec: Any) -> Tuple[Predicate, Optional[int], Optional[int]]:
    """
    Predicate plus the page window of any condition.

    Returns:
        (predicate, offset, limit); offset and limit are None unless the
        condition is Paginated
    """
    condition = to_condition(spec)
    if isinstance(condition, Paginated):
        return translate_paginated(condition)
    return translate(condition), None, None


def translate_unpaged(spec: Any, operation: str) -> Predicate:
    """
    Translate a condition for an operation that has no notion of pages.

    Raises:
        TranslationError: If the condition is Paginated
    """
    condition = to_condition(spec)
    if isinstance(condition, Paginated):
        raise TranslationError(f"{operation} does not accept paginated conditions")
    return translate(condition)


def escape_like(term: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def _translate_exact(condition: ExactMatch) -> Predicate:
    if not isinstance(condition.values, Mapping):
        raise TranslationError(
            f"Exact match needs a mapping of field -> value, got {type(condition.values).__name__}"
        )
    constraints = []
    for field, value in condition.values.items():
        _check_field(field)
        constraints.append(Constraint(field, Operator.EQ, value))
    return Predicate(tuple(constraints))


def _translate_text(condition: TextMatch) -> Predicate:
    _check_field(condition.field)
    if not isinstance(condition.term, str):
        raise TranslationError(
            f"Text search term for '{condition.field}' must be a string, "
            f"got {type(condition.term).__name__}"
        )
    return Predicate((
        Constraint(
            condition.field,
            Operator.LIKE,
            f"%{escape_like(condition.term)}%",
            case_insensitive=True,
            escape=LIKE_ESCAPE,
        ),
    ))


def _translate_operators(condition: OperatorMap) -> Predicate:
    if not isinstance(condition.conditions, Mapping):
        raise TranslationError(
            f"Operator search needs a mapping of field -> operators, "
            f"got {type(condition.conditions).__name__}"
        )
    constraints = []
    for field, operators in condition.conditions.items():
        _check_field(field)
        if not isinstance(operators, Mapping):
            constraints.append(Constraint(field, Operator.EQ, operators))
            continue
        if not operators:
            raise TranslationError(f"Operator map for '{field}' is empty")
        for name, value in operators.items():
            operator = _parse_operator(field, name)
            constraints.append(Constraint(field, operator, _check_value(field, operator, value)))
    return Predicate(tuple(constraints))


def _check_field(field: Any) -> None:
    if not isinstance(field, str) or not field:
        raise TranslationError(f"Field names must be non-empty strings, got {field!r}")


def _parse_operator(field: str, name: Any) -> Operator:
    if isinstance(name, Operator):
        return name
    if isinstance(name, str):
        try:
            return Operator(name)
        except ValueError:
            pass
    raise TranslationError(f"Unknown operator '{name}' for field '{field}'")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def _check_value(field: str, operator: Operator, value: Any) -> Any:
    if operator is Operator.BETWEEN:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise TranslationError(
                f"'between' on '{field}' needs exactly two bounds (low, high), got {value!r}"
            )
        return tuple(value)

    if operator is Operator.IN:
        if not _is_sequence(value):
            raise TranslationError(f"'in' on '{field}' needs a list of values, got {value!r}")
        for item in value:
            if _is_sequence(item) or isinstance(item, Mapping):
                raise TranslationError(f"'in' on '{field}' accepts scalar values only, got {item!r}")
        return tuple(value)

    if operator is Operator.LIKE and not isinstance(value, str):
        raise TranslationError(f"'like' on '{field}' needs a string pattern, got {value!r}")

    return value


def _positive_int(name: str, value: Any) -> int:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise TranslationError(f"{name} must be a positive integer, got {value!r}")
    return value


# ========================================
# SQLAlchemy Mapping
# ========================================

def get_column(table: Table, field: str):
    """Column of a table by field name."""
    if field not in table.c:
        raise TranslationError(f"Unknown field '{field}' for table '{table.name}'")
    return table.c[field]


def compile_constraint(constraint: Constraint, table: Table) -> ColumnElement:
    column = get_column(table, constraint.field)
    operator, value = constraint.operator, constraint.value

    if operator is Operator.EQ:
        return column == value
    if operator is Operator.NE:
        return column != value
    if operator is Operator.GT:
        return column > value
    if operator is Operator.GTE:
        return column >= value
    if operator is Operator.LT:
        return column < value
    if operator is Operator.LTE:
        return column <= value
    if operator is Operator.LIKE:
        match = column.ilike if constraint.case_insensitive else column.like
        return match(value, escape=constraint.escape)
    if operator is Operator.IN:
        return column.in_(list(value))
    return column.between(value[0], value[1])


def compile_predicate(predicate: Predicate, table: Table) -> Optional[ColumnElement]:
    """
    SQLAlchemy WHERE clause for a predicate.

    Returns:
        The AND of all constraints, or None for a match-all predicate
    """
    if predicate.matches_all:
        return None
    return and_(*(compile_constraint(c, table) for c in predicate.constraints))


def resolve_order(table: Table, order_by: Any) -> List[ColumnElement]:
    """
    ORDER BY expressions.

    Accepts a field name, "-field" for descending, (field, "asc"|"desc")
    pairs, or a list mixing those forms.
    """
    if order_by is None:
        return []
    if isinstance(order_by, (str, tuple)):
        order_by = [order_by]

    clauses = []
    for item in order_by:
        if isinstance(item, tuple):
            if len(item) != 2 or str(item[1]).lower() not in ("asc", "desc"):
                raise TranslationError(f"Invalid ordering {item!r}")
            field, direction = item[0], str(item[1]).lower()
        elif isinstance(item, str) and item.startswith("-"):
            field, direction = item[1:], "desc"
        else:
            field, direction = item, "asc"
        _check_field(field)
        column = get_column(table, field)
        clauses.append(column.desc() if direction == "desc" else column.asc())
    return clauses


def resolve_columns(table: Table, fields: Sequence[str]) -> list:
    """Columns for a projection list."""
    if isinstance(fields, str) or not fields:
        raise TranslationError("Projection needs a non-empty list of field names")
    columns = []
    for field in fields:
        _check_field(field)
        columns.append(get_column(table, field))
    return columns
