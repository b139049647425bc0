"""Bulk modification pipeline: filters select rows, actions rewrite them.

Every entry point works on a deep copy of the dataset and finishes with a
fresh validation pass, so the caller gets back replacement rows plus the
issues that apply to them.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Callable, Sequence

from roster_qa.core.actions import apply_actions
from roster_qa.core.filters import matches_filters
from roster_qa.core.instructions import parse_instructions
from roster_qa.core.models import (
    ActionOperation,
    Category,
    DataModificationAction,
    DataModificationInstructions,
    ModificationResult,
    Row,
    StructuralError,
    ValidationIssue,
)
from roster_qa.core.validator import validate_rows

_log = logging.getLogger(__name__)


def _run(
    rows: Sequence[Row],
    selected: Callable[[int, Row], bool],
    actions: Sequence[DataModificationAction],
    category: Category | str,
    config: dict[str, Any] | None,
) -> ModificationResult:
    updated: list[Row] = deepcopy(list(rows))
    result = ModificationResult(rows=updated, rows_affected=0)

    for idx, row in enumerate(updated):
        if not selected(idx, row):
            continue
        outcome = apply_actions(row, actions, row_number=idx + 1)
        updated[idx] = outcome.row
        result.skipped.extend(outcome.skipped)
        result.changes.extend(outcome.changes)
        if outcome.changed:
            result.rows_affected += 1

    result.issues = validate_rows(updated, category, config)
    return result


def apply_instructions(
    rows: Sequence[Row],
    instructions: DataModificationInstructions,
    category: Category | str | None = None,
    config: dict[str, Any] | None = None,
) -> ModificationResult:
    """Run *instructions* over *rows* and re-validate the result.

    Args:
        rows: The current dataset. Never modified.
        instructions: Already-validated instructions.
        category: Category used for re-validation. Defaults to the
            instructions' target category.
        config: Validation profile for the re-validation pass.
    """
    category = Category(category or instructions.target_category)
    result = _run(
        rows,
        lambda _idx, row: matches_filters(row, instructions.filters),
        instructions.actions,
        category,
        config,
    )
    _log.info(
        "Modification %r on %s: %d/%d rows changed, %d actions skipped",
        instructions.description,
        category.value,
        result.rows_affected,
        len(rows),
        len(result.skipped),
    )
    return result


def modify_rows(
    rows: Sequence[Row],
    payload: Any,
    category: Category | str | None = None,
    config: dict[str, Any] | None = None,
) -> tuple[DataModificationInstructions, ModificationResult]:
    """Validate a raw instructions payload, then apply it.

    Raises:
        StructuralError: the payload is malformed; no row has been touched.
    """
    instructions = parse_instructions(payload)
    return instructions, apply_instructions(rows, instructions, category, config)


def apply_correction(
    rows: Sequence[Row],
    issue: ValidationIssue,
    category: Category | str,
    config: dict[str, Any] | None = None,
) -> ModificationResult:
    """Apply an issue's suggested correction as a ``set`` on the issue's row."""
    correction = issue.suggested_correction
    if correction is None:
        raise StructuralError("issue has no suggested correction", "issue.suggestedCorrection")
    if not 1 <= issue.row <= len(rows):
        raise StructuralError(f"row {issue.row} is outside the dataset (1..{len(rows)})", "issue.row")

    action = DataModificationAction(
        column=correction.column,
        new_value=correction.new_value,
        operation=ActionOperation.SET.value,
    )
    return _run(rows, lambda idx, _row: idx == issue.row - 1, [action], category, config)
