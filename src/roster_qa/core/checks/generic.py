"""Checks that apply to every category.

- BlankValueCheck: any column whose value is empty → WARNING
- DuplicateIdCheck: repeated primary key (trim-normalized) → ERROR
- MissingIdCheck: empty or absent primary key → ERROR
"""

from __future__ import annotations

from typing import Any, Sequence

from roster_qa.core.check_base import Check, registry
from roster_qa.core.models import ID_COLUMNS, Category, Row, Severity, ValidationIssue
from roster_qa.core.values import is_blank, to_text


def id_column_for(category: Category, config: dict[str, Any]) -> str:
    return config.get("id_column") or ID_COLUMNS[category]


@registry.register
class BlankValueCheck(Check):
    """Flag every column whose value is absent or whitespace-only."""

    check_id = "generic.blank_value"
    name = "Empty value"
    default_severity = Severity.WARNING.value

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        severity = self.severity(config)
        issues: list[ValidationIssue] = []
        for idx, row in enumerate(rows):
            for col, val in row.items():
                if is_blank(val):
                    issues.append(
                        ValidationIssue(
                            row=idx + 1,
                            column=col,
                            message=f"Empty value found in column '{col}'.",
                            severity=severity,
                        )
                    )
        return issues


@registry.register
class DuplicateIdCheck(Check):
    """Detect repeated identifiers in the category's primary-key column."""

    check_id = "generic.duplicate_id"
    name = "Duplicate identifier"
    default_severity = Severity.ERROR.value

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        id_col = id_column_for(category, config)
        severity = self.severity(config)
        seen: set[str] = set()
        issues: list[ValidationIssue] = []

        for idx, row in enumerate(rows):
            val = row.get(id_col)
            if is_blank(val):
                continue
            # Case-sensitive, whitespace-insensitive at the edges
            key = to_text(val).strip()
            if key in seen:
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=id_col,
                        message=f"Duplicate ID found: '{key}'. IDs must be unique.",
                        severity=severity,
                    )
                )
            seen.add(key)
        return issues


@registry.register
class MissingIdCheck(Check):
    """Flag rows whose primary key is absent or empty."""

    check_id = "generic.missing_id"
    name = "Missing identifier"
    default_severity = Severity.ERROR.value

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        id_col = id_column_for(category, config)
        severity = self.severity(config)
        return [
            ValidationIssue(
                row=idx + 1,
                column=id_col,
                message=f"Missing or empty '{id_col}'. This is a critical identifier.",
                severity=severity,
            )
            for idx, row in enumerate(rows)
            if is_blank(row.get(id_col))
        ]
