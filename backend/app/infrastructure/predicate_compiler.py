"""Predicate Compiler — the JSON filter/sort language compiled to SQLAlchemy clauses.

Invariants:
    - Only fields listed in the DocumentMapping are addressable
    - Operand values are coerced to the column's Python type before binding
    - $ne / $nin also match NULL (document-store semantics, not SQL three-valued logic)
    - Array-field conditions compile to EXISTS-style subqueries on the association table
    - Every failure raises PredicateError tagged with the clause it came from

Design Decisions:
    - Whitelisted operators: the filter language is client input (ADR: security)
    - Compilation raises instead of matching nothing: a typo in a field name is a
      400, not a silently empty list
"""

import math
import uuid
from datetime import datetime

from sqlalchemy import and_, or_, not_, true, select, func
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from app.core.errors import InvalidDeadlineError
from app.core.value_coercion import coerce_deadline
from app.infrastructure.document_mappings import ArrayField, DocumentMapping


class PredicateError(ValueError):
    """A predicate, sort or patch could not be compiled."""

    def __init__(self, message: str, clause: str = "where"):
        super().__init__(message)
        self.clause = clause


_COMPARISONS = {
    "$eq": lambda column, value: column == value,
    "$gt": lambda column, value: column > value,
    "$gte": lambda column, value: column >= value,
    "$lt": lambda column, value: column < value,
    "$lte": lambda column, value: column <= value,
}

_ASCENDING = (1, "1", "asc", "ascending")
_DESCENDING = (-1, "-1", "desc", "descending")


def compile_predicate(
    mapping: DocumentMapping, predicate: dict | None,
) -> ColumnElement[bool]:
    """Compile a filter document into a WHERE clause."""
    if predicate is None:
        return true()
    if not isinstance(predicate, dict):
        raise PredicateError("predicate must be a JSON object")

    clauses = []
    for key, condition in predicate.items():
        if key in ("$and", "$or", "$nor"):
            clauses.append(_compile_logical(mapping, key, condition))
        elif key.startswith("$"):
            raise PredicateError(f"unsupported operator '{key}'")
        elif key in mapping.arrays:
            clauses.append(
                _compile_array(mapping, mapping.arrays[key], key, condition),
            )
        elif key in mapping.fields:
            clauses.append(_compile_field(mapping.fields[key], key, condition))
        else:
            raise PredicateError(f"unknown field '{key}'")
    return and_(*clauses) if clauses else true()


def compile_sort(mapping: DocumentMapping, sort: dict | None) -> list:
    """Compile {field: 1|-1} into ORDER BY terms."""
    if not sort:
        return []
    order = []
    for key, direction in sort.items():
        column = mapping.fields.get(key)
        if column is None:
            raise PredicateError(f"cannot sort by '{key}'", clause="sort")
        if isinstance(direction, str):
            direction = direction.lower()
        if direction in _ASCENDING:
            order.append(column.asc())
        elif direction in _DESCENDING:
            order.append(column.desc())
        else:
            raise PredicateError(
                f"sort direction for '{key}' must be 1 or -1", clause="sort",
            )
    return order


def coerce_operand(
    column: InstrumentedAttribute, value: object, name: str,
    clause: str = "where",
) -> object:
    """Convert a JSON operand to the column's Python type."""
    if value is None:
        return None
    python_type = column.type.python_type
    if python_type is uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(str(value))
        except ValueError:
            raise PredicateError(f"'{name}' expects an id", clause)
    if python_type is datetime:
        try:
            return coerce_deadline(value)
        except InvalidDeadlineError:
            raise PredicateError(f"'{name}' expects a date", clause)
    if python_type is bool:
        if isinstance(value, bool):
            return value
        raise PredicateError(f"'{name}' expects a boolean", clause)
    if python_type is str:
        if isinstance(value, str):
            return value
        raise PredicateError(f"'{name}' expects text", clause)
    if isinstance(value, float) and not math.isfinite(value):
        raise PredicateError(f"'{name}' expects a finite number", clause)
    return value


def _is_operator_document(condition: object) -> bool:
    return (
        isinstance(condition, dict)
        and bool(condition)
        and all(str(k).startswith("$") for k in condition)
    )


def _compile_logical(
    mapping: DocumentMapping, key: str, condition: object,
) -> ColumnElement[bool]:
    if not isinstance(condition, list) or not condition:
        raise PredicateError(f"'{key}' expects a non-empty array")
    parts = [compile_predicate(mapping, part) for part in condition]
    if key == "$and":
        return and_(*parts)
    if key == "$or":
        return or_(*parts)
    return not_(or_(*parts))


def _operand_list(name: str, op: str, operand: object) -> list:
    if not isinstance(operand, list):
        raise PredicateError(f"'{name}.{op}' expects an array")
    return operand


def _compile_field(
    column: InstrumentedAttribute, name: str, condition: object,
) -> ColumnElement[bool]:
    if isinstance(condition, (dict, list)) and not _is_operator_document(condition):
        raise PredicateError(f"'{name}' cannot match a nested document or array")
    if not _is_operator_document(condition):
        return _equals(column, name, condition)

    parts = []
    for op, operand in condition.items():
        if op == "$eq":
            parts.append(_equals(column, name, operand))
        elif op == "$ne":
            parts.append(not_(_equals(column, name, operand)) if operand is None
                         else or_(column != coerce_operand(column, operand, name),
                                  column.is_(None)))
        elif op in _COMPARISONS:
            if operand is None:
                raise PredicateError(f"'{name}.{op}' cannot compare with null")
            parts.append(_COMPARISONS[op](column, coerce_operand(column, operand, name)))
        elif op == "$in":
            parts.append(_in(column, name, _operand_list(name, op, operand)))
        elif op == "$nin":
            values = _operand_list(name, op, operand)
            excluded = not_(_in(column, name, values))
            if None not in values:
                excluded = or_(excluded, column.is_(None))
            parts.append(excluded)
        elif op == "$exists":
            parts.append(column.is_not(None) if operand else column.is_(None))
        elif op == "$not":
            parts.append(not_(_compile_field(column, name, operand)))
        else:
            raise PredicateError(f"unsupported operator '{op}' on '{name}'")
    return and_(*parts)


def _equals(
    column: InstrumentedAttribute, name: str, value: object,
) -> ColumnElement[bool]:
    if value is None:
        return column.is_(None)
    return column == coerce_operand(column, value, name)


def _in(
    column: InstrumentedAttribute, name: str, values: list,
) -> ColumnElement[bool]:
    concrete = [coerce_operand(column, v, name) for v in values if v is not None]
    clause = column.in_(concrete)
    if None in values:
        clause = or_(clause, column.is_(None))
    return clause


def _compile_array(
    mapping: DocumentMapping, array: ArrayField, name: str, condition: object,
) -> ColumnElement[bool]:
    owner_id = mapping.id_column

    def containing(value_clause) -> ColumnElement[bool]:
        return owner_id.in_(select(array.owner).where(value_clause))

    def value(v: object) -> object:
        return coerce_operand(array.value, v, name)

    if isinstance(condition, list):
        raise PredicateError(f"'{name}' cannot match a whole array")
    if not _is_operator_document(condition):
        if condition is None or isinstance(condition, dict):
            raise PredicateError(f"'{name}' expects a member value")
        return containing(array.value == value(condition))

    parts = []
    for op, operand in condition.items():
        if op == "$eq":
            parts.append(containing(array.value == value(operand)))
        elif op == "$ne":
            parts.append(not_(containing(array.value == value(operand))))
        elif op == "$in":
            values = [value(v) for v in _operand_list(name, op, operand)]
            parts.append(containing(array.value.in_(values)))
        elif op == "$nin":
            values = [value(v) for v in _operand_list(name, op, operand)]
            parts.append(not_(containing(array.value.in_(values))))
        elif op == "$size":
            if isinstance(operand, bool) or not isinstance(operand, int):
                raise PredicateError(f"'{name}.$size' expects an integer")
            size = (
                select(func.count())
                .select_from(array.model)
                .where(array.owner == owner_id)
                .scalar_subquery()
            )
            parts.append(size == operand)
        else:
            raise PredicateError(f"unsupported operator '{op}' on '{name}'")
    return and_(*parts)
