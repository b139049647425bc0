"""Filter evaluation: decide whether a row is selected by a list of filters.

Filters are AND-combined and fail closed: a missing cell, an incompatible
type or an unknown operator all mean "no match", never an exception.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from roster_qa.core.models import DataFilter, FilterOperator, Row
from roster_qa.core.values import harmonize, is_missing, is_number, strictly_equal

_log = logging.getLogger(__name__)


def _eq(cell: Any, target: Any) -> bool:
    # Case-insensitive only when both sides are still strings after coercion
    if isinstance(cell, str) and isinstance(target, str):
        return cell.lower() == target.lower()
    return strictly_equal(cell, target)


def _numeric(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def op(cell: Any, target: Any) -> bool:
        return is_number(cell) and is_number(target) and compare(cell, target)

    return op


def _textual(compare: Callable[[str, str], bool]) -> Callable[[Any, Any], bool]:
    def op(cell: Any, target: Any) -> bool:
        return isinstance(cell, str) and isinstance(target, str) and compare(cell.lower(), target.lower())

    return op


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    FilterOperator.EQ.value: _eq,
    FilterOperator.NEQ.value: lambda cell, target: not _eq(cell, target),
    FilterOperator.GT.value: _numeric(lambda a, b: a > b),
    FilterOperator.LT.value: _numeric(lambda a, b: a < b),
    FilterOperator.GTE.value: _numeric(lambda a, b: a >= b),
    FilterOperator.LTE.value: _numeric(lambda a, b: a <= b),
    FilterOperator.CONTAINS.value: _textual(lambda a, b: b in a),
    FilterOperator.NOT_CONTAINS.value: _textual(lambda a, b: b not in a),
    FilterOperator.STARTS_WITH.value: _textual(lambda a, b: a.startswith(b)),
    FilterOperator.ENDS_WITH.value: _textual(lambda a, b: a.endswith(b)),
}


def _operator_key(operator: Any) -> str:
    if isinstance(operator, FilterOperator):
        return operator.value
    return str(operator)


def filter_matches(row: Row, flt: DataFilter) -> bool:
    """Evaluate a single filter against a row."""
    cell = row.get(flt.column)
    if is_missing(cell):
        return False

    op = _OPERATORS.get(_operator_key(flt.operator))
    if op is None:
        _log.warning("Unknown filter operator %r on column %r; row not selected", flt.operator, flt.column)
        return False

    cell, target = harmonize(cell, flt.value)
    return op(cell, target)


def matches_filters(row: Row, filters: Sequence[DataFilter]) -> bool:
    """True if the row satisfies every filter. An empty list matches every row."""
    return all(filter_matches(row, flt) for flt in filters)
