"""Client-specific checks: email format and status vocabulary."""

from __future__ import annotations

import re
from typing import Any, Sequence

from roster_qa.core.check_base import Check, registry
from roster_qa.core.models import Category, Row, Severity, ValidationIssue
from roster_qa.core.values import is_blank, to_text

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_STATUSES: list[str] = ["active", "inactive", "pending", "vip"]


@registry.register
class EmailFormatCheck(Check):
    """Non-empty emails must look like ``local@domain.tld``."""

    check_id = "clients.email"
    name = "Email format"
    default_severity = Severity.WARNING.value
    categories = (Category.CLIENTS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "email")
        severity = self.severity(config)
        issues: list[ValidationIssue] = []
        for idx, row in enumerate(rows):
            val = row.get(column)
            if is_blank(val):
                continue
            if not _EMAIL_RE.match(to_text(val).strip()):
                issues.append(
                    ValidationIssue(
                        row=idx + 1,
                        column=column,
                        message=f"'{to_text(val)}' is not a valid email format.",
                        severity=severity,
                    )
                )
        return issues


@registry.register
class ClientStatusCheck(Check):
    """Status must be one of the allowed values, compared case-insensitively."""

    check_id = "clients.status"
    name = "Client status"
    default_severity = Severity.WARNING.value
    categories = (Category.CLIENTS,)

    def check(self, rows: Sequence[Row], category: Category, config: dict[str, Any]) -> list[ValidationIssue]:
        column = config.get("column", "status")
        allowed: list[str] = config.get("allowed_values") or DEFAULT_STATUSES
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
                            f"'{to_text(val)}' is not a valid status. "
                            f"Expected: {', '.join(allowed)} (case-insensitive)."
                        ),
                        severity=severity,
                    )
                )
        return issues
