"""SchemaValidator: orchestrates running checks against a list of rows.

The validator is stateless: it neither mutates the rows nor keeps issues
between calls. Callers merge or display the returned list themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

# Import checks module to trigger all @registry.register decorators
import roster_qa.core.checks  # noqa: F401
from roster_qa.core.check_base import CheckRegistry, registry
from roster_qa.core.models import Category, Row, Severity, ValidationIssue

_log = logging.getLogger(__name__)


class SchemaValidator:
    """Run schema checks and return ValidationIssue objects.

    Usage::

        validator = SchemaValidator()
        issues = validator.validate(rows, "clients", config=profile)
    """

    def __init__(self, check_registry: CheckRegistry | None = None) -> None:
        self._registry = check_registry or registry

    def validate(
        self,
        rows: Sequence[Row],
        category: Category | str,
        config: dict[str, Any] | None = None,
    ) -> list[ValidationIssue]:
        """Run every check that applies to *category* and return all issues.

        Args:
            rows: The dataset, in display order.
            category: ``clients``, ``workers`` or ``tasks``.
            config: Compiled validation profile.  Structure::

                {
                    "checks": {
                        "clients.status": {
                            "enabled": True,
                            "severity": "warning",
                            "allowed_values": ["active", "inactive"],
                        },
                        ...
                    },
                    "id_columns": {"clients": "clientId", ...},
                }

        Returns:
            Issues ordered by row number; within a row, by check run order.
        """
        category = Category(category)
        if config is None:
            config = {}

        if not rows:
            return [
                ValidationIssue(
                    row=0,
                    column="N/A",
                    message="No data to validate.",
                    severity=Severity.WARNING,
                )
            ]

        checks_config: dict[str, dict] = config.get("checks", {})
        id_columns: dict[str, str] = config.get("id_columns", {})

        all_issues: list[ValidationIssue] = []

        for check_cls in self._registry.all_checks():
            check_inst = check_cls()
            if not check_inst.applies_to(category):
                continue
            check_cfg = {**checks_config.get(check_inst.check_id, {})}
            if not check_cfg.pop("enabled", True):
                continue
            if category.value in id_columns:
                check_cfg.setdefault("id_column", id_columns[category.value])
            try:
                issues = check_inst.check(rows, category, check_cfg)
            except Exception as exc:
                # Never crash the whole validation because one check fails
                _log.exception("Check %s failed on %s: %s", check_inst.check_id, category.value, exc)
                issues = []
            all_issues.extend(issues)

        # sorted() is stable: same-row issues keep check run order
        all_issues = sorted(all_issues, key=lambda issue: issue.row)
        _log.debug("Validated %d %s rows: %d issues", len(rows), category.value, len(all_issues))
        return all_issues


_default_validator = SchemaValidator()


def validate_rows(
    rows: Sequence[Row],
    category: Category | str,
    config: dict[str, Any] | None = None,
) -> list[ValidationIssue]:
    """Validate *rows* with the default check registry."""
    return _default_validator.validate(rows, category, config)
