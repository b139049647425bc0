"""Action application: mutate a copy of one row according to an action list.

Actions apply in order against the row's evolving state. An action whose
operation does not fit the cell's type is skipped and reported; it never
aborts the remaining actions.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Sequence

from roster_qa.core.models import (
    ActionOperation,
    ActionOutcome,
    CellChange,
    DataModificationAction,
    Row,
    SkippedAction,
)
from roster_qa.core.values import is_number, is_sequence, strictly_equal

_log = logging.getLogger(__name__)

# Sentinel for "column not present in the row"
_ABSENT = object()


def _operation_key(operation: Any) -> str:
    if operation is None:
        return ActionOperation.SET.value
    if isinstance(operation, ActionOperation):
        return operation.value
    return str(operation)


def _increment(current: Any, new: Any) -> tuple[Any, str | None]:
    if is_number(current) and is_number(new):
        return current + new, None
    return None, "increment needs a numeric cell and a numeric value"


def _decrement(current: Any, new: Any) -> tuple[Any, str | None]:
    if is_number(current) and is_number(new):
        return current - new, None
    return None, "decrement needs a numeric cell and a numeric value"


def _append(current: Any, new: Any) -> tuple[Any, str | None]:
    if isinstance(current, str) and isinstance(new, str):
        return current + new, None
    if is_sequence(current) and is_sequence(new):
        return [*current, *deepcopy(new)], None
    return None, "append needs two strings or two lists"


def _prepend(current: Any, new: Any) -> tuple[Any, str | None]:
    if isinstance(current, str) and isinstance(new, str):
        return new + current, None
    if is_sequence(current) and is_sequence(new):
        return [*deepcopy(new), *current], None
    return None, "prepend needs two strings or two lists"


_COMBINERS = {
    ActionOperation.INCREMENT.value: _increment,
    ActionOperation.DECREMENT.value: _decrement,
    ActionOperation.APPEND.value: _append,
    ActionOperation.PREPEND.value: _prepend,
}


def apply_actions(
    row: Row,
    actions: Sequence[DataModificationAction],
    row_number: int | None = None,
) -> ActionOutcome:
    """Apply *actions* to a deep copy of *row*.

    Args:
        row: The selected row. Never modified.
        actions: Actions to apply, in order.
        row_number: 1-based row number, used in diagnostics and change records.

    Returns:
        ActionOutcome with the new row, whether any value changed, the skipped
        actions and one CellChange per effective mutation.
    """
    new_row: Row = deepcopy(row)
    skipped: list[SkippedAction] = []
    changes: list[CellChange] = []

    for action in actions:
        op = _operation_key(action.operation)
        current = new_row.get(action.column, _ABSENT)

        if op == ActionOperation.SET.value:
            # Only "set" may create a column
            if current is _ABSENT or not strictly_equal(current, action.new_value):
                new_row[action.column] = deepcopy(action.new_value)
                changes.append(
                    CellChange(
                        row=row_number,
                        column=action.column,
                        old_value=None if current is _ABSENT else current,
                        new_value=new_row[action.column],
                        operation=op,
                    )
                )
            continue

        combine = _COMBINERS.get(op)
        if combine is None:
            reason = "unknown operation"
            result = None
        elif current is _ABSENT:
            reason = "column not present in row"
            result = None
        else:
            result, reason = combine(current, action.new_value)

        if reason is not None:
            diag = SkippedAction(row=row_number, column=action.column, operation=op, reason=reason)
            _log.warning("%s", diag.message)
            skipped.append(diag)
            continue

        new_row[action.column] = result
        changes.append(
            CellChange(row=row_number, column=action.column, old_value=current, new_value=result, operation=op)
        )

    return ActionOutcome(row=new_row, changed=bool(changes), skipped=skipped, changes=changes)
