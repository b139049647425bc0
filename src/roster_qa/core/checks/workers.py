"""Worker-specific checks: skills present, hourly rate positive."""

from __future__ import annotations

from typing import Any, Sequence

from roster_qa.core.check_base import Check, registry
from roster_qa.core.models import Category, Row, Severity, ValidationIssue
from roster_qa.core.values import as_number, is_blank


@registry.register
class SkillsCheck(Check):
    """Skills must be a non-empty string or a non-empty list."""

    check_id = "workers.skills"
    name = "Worker skills"
    default_severity = Severity.WARNING.value
    categories = (Category.WORKERS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "skills")
        severity = self.severity(config)
        return [
            ValidationIssue(
                row=idx + 1,
                column=column,
                message=f"'{column}' should be a non-empty string.",
                severity=severity,
            )
            for idx, row in enumerate(rows)
            if is_blank(row.get(column))
        ]


@registry.register
class HourlyRateCheck(Check):
    check_id = "workers.hourly_rate"
    name = "Hourly rate"
    default_severity = Severity.WARNING.value
    categories = (Category.WORKERS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "hourlyRate")
        severity = self.severity(config)
        issues: list[ValidationIssue] = []
        for idx, row in enumerate(rows):
            val = row.get(column)
            if is_blank(val):
                continue
            rate = as_number(val)
            if rate is None or not rate > 0:
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=column,
                        message=f"'{column}' must be a positive number.",
                        severity=severity,
                    )
                )
        return issues
