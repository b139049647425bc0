"""Task-specific checks: priority vocabulary and due-date parsing."""

from __future__ import annotations

from typing import Any, Sequence

from roster_qa.core.check_base import Check, registry
from roster_qa.core.models import Category, Row, Severity, ValidationIssue
from roster_qa.core.values import is_blank, is_number, parse_date, to_text

DEFAULT_PRIORITIES: list[str] = ["high", "medium", "low", "urgent"]


@registry.register
class TaskPriorityCheck(Check):
    check_id = "tasks.priority"
    name = "Task priority"
    default_severity = Severity.WARNING.value
    categories = (Category.TASKS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "priority")
        allowed: list[str] = config.get("allowed_values") or DEFAULT_PRIORITIES
        allowed_set = {v.lower() for v in allowed}
        severity = self.severity(config)
        issues: list[ValidationIssue] = []
        for idx, row in enumerate(rows):
            val = row.get(column)
            if is_blank(val):
                continue
            if to_text(val).lower() not in allowed_set:
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=column,
                        message=(
                            f"'{to_text(val)}' is not a valid priority. "
                            f"Expected: {', '.join(allowed)} (case-insensitive)."
                        ),
                        severity=severity,
                    )
                )
        return issues


@registry.register
class DueDateCheck(Check):
    """Due dates must parse to a calendar date.

    Strings and epoch-millisecond numbers that do not parse are a WARNING;
    values of any other kind (lists, booleans, objects) are promoted to
    ``invalid_type_severity`` (ERROR by default).
    """

    check_id = "tasks.due_date"
    name = "Due date"
    default_severity = Severity.WARNING.value
    categories = (Category.TASKS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "dueDate")
        severity = self.severity(config)
        type_severity = Severity(str(config.get("invalid_type_severity", Severity.ERROR.value)).lower())
        issues: list[ValidationIssue] = []
        for idx, row in enumerate(rows):
            val = row.get(column)
            if is_blank(val):
                continue
            if not (isinstance(val, str) or is_number(val)):
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=column,
                        message=f"'{to_text(val)}' is not a date string or number.",
                        severity=type_severity,
                    )
                )
            elif parse_date(val) is None:
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=column,
                        message=f"'{to_text(val)}' is not a valid date format.",
                        severity=severity,
                    )
                )
        return issues
