"""Structural validation of collaborator-supplied payloads.

Anything that arrives from outside the engine (an AI translation, an HTTP
body, a JSON file) is checked here before a single row is touched. A payload
that fails is rejected whole with a StructuralError naming the offending path.
"""

from __future__ import annotations

from typing import Any

from roster_qa.core.models import (
    ActionOperation,
    Category,
    DataFilter,
    DataModificationAction,
    DataModificationInstructions,
    FilterOperator,
    Severity,
    StructuralError,
    SuggestedCorrection,
    ValidationIssue,
)
from roster_qa.core.values import is_number

_FILTER_OPERATORS = [op.value for op in FilterOperator]
_ACTION_OPERATIONS = [op.value for op in ActionOperation]
_CATEGORIES = [c.value for c in Category]
_SEVERITIES = [s.value for s in Severity]


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def require_dict(value: Any, path: str) -> dict:
    if not isinstance(value, dict):
        raise StructuralError("expected an object", path)
    return value


def require_list(container: dict, key: str, path: str) -> list:
    if key not in container:
        raise StructuralError("missing required array", f"{path}.{key}")
    value = container[key]
    if not isinstance(value, list):
        raise StructuralError("expected an array", f"{path}.{key}")
    return value


def require_str(container: dict, key: str, path: str, allow_empty: bool = False) -> str:
    value = container.get(key)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise StructuralError("expected a non-empty string", f"{path}.{key}")
    return value


def optional_bool(container: dict, key: str, path: str, default: bool | None = None) -> bool | None:
    value = container.get(key, default)
    if value is not None and not isinstance(value, bool):
        raise StructuralError("expected a boolean", f"{path}.{key}")
    return value


def require_choice(value: Any, choices: list[str], path: str) -> str:
    if not isinstance(value, str) or value not in choices:
        raise StructuralError(f"{value!r} is not one of {', '.join(choices)}", path)
    return value


# ---------------------------------------------------------------------------
# Modification instructions
# ---------------------------------------------------------------------------


def parse_filter(data: Any, path: str) -> DataFilter:
    data = require_dict(data, path)
    column = require_str(data, "column", path)
    operator = require_choice(data.get("operator"), _FILTER_OPERATORS, f"{path}.operator")
    if "value" not in data:
        raise StructuralError("missing required field", f"{path}.value")
    return DataFilter(column=column, operator=operator, value=data["value"])


def parse_action(data: Any, path: str) -> DataModificationAction:
    data = require_dict(data, path)
    column = require_str(data, "column", path)
    if "newValue" not in data:
        raise StructuralError("missing required field", f"{path}.newValue")
    operation = data.get("operation")
    if operation is not None:
        operation = require_choice(operation, _ACTION_OPERATIONS, f"{path}.operation")
    return DataModificationAction(column=column, new_value=data["newValue"], operation=operation)


def parse_instructions(payload: Any, path: str = "instructions") -> DataModificationInstructions:
    """Validate and convert a DataModificationInstructions dict.

    ``filters`` and ``actions`` must be present and be arrays (possibly empty);
    operators, operations and the target category must belong to their
    declared sets. ``description`` and ``confirmationRequired`` are optional
    but type-checked when present.
    """
    data = require_dict(payload, path)
    filters_raw = require_list(data, "filters", path)
    actions_raw = require_list(data, "actions", path)
    category = require_choice(data.get("targetCategory"), _CATEGORIES, f"{path}.targetCategory")

    description = data.get("description", "")
    if not isinstance(description, str):
        raise StructuralError("expected a string", f"{path}.description")

    return DataModificationInstructions(
        target_category=Category(category),
        filters=[parse_filter(f, f"{path}.filters[{i}]") for i, f in enumerate(filters_raw)],
        actions=[parse_action(a, f"{path}.actions[{i}]") for i, a in enumerate(actions_raw)],
        description=description,
        confirmation_required=bool(optional_bool(data, "confirmationRequired", path, default=False)),
    )


# ---------------------------------------------------------------------------
# Externally identified issues
# ---------------------------------------------------------------------------


def parse_correction(data: Any, path: str) -> SuggestedCorrection:
    data = require_dict(data, path)
    column = require_str(data, "column", path)
    if "newValue" not in data:
        raise StructuralError("missing required field", f"{path}.newValue")
    reason = data.get("reason", "")
    if not isinstance(reason, str):
        raise StructuralError("expected a string", f"{path}.reason")
    return SuggestedCorrection(column=column, new_value=data["newValue"], reason=reason)


def parse_issue(data: Any, path: str = "issue") -> ValidationIssue:
    data = require_dict(data, path)
    row = data.get("row")
    if not isinstance(row, int) or isinstance(row, bool) or row < 0:
        raise StructuralError("expected a non-negative integer", f"{path}.row")
    column = require_str(data, "column", path)
    message = require_str(data, "message", path)
    severity = require_choice(data.get("severity"), _SEVERITIES, f"{path}.severity")

    correction = None
    if data.get("suggestedCorrection") is not None:
        correction = parse_correction(data["suggestedCorrection"], f"{path}.suggestedCorrection")

    confidence = data.get("aiConfidence")
    if confidence is not None and (not is_number(confidence) or not 0 <= confidence <= 1):
        raise StructuralError("expected a number between 0 and 1", f"{path}.aiConfidence")

    return ValidationIssue(
        row=row,
        column=column,
        message=message,
        severity=Severity(severity),
        suggested_correction=correction,
        is_ai_identified=optional_bool(data, "isAIIdentified", path),
        is_anomaly=optional_bool(data, "isAnomaly", path),
        ai_confidence=confidence,
    )


def parse_external_issues(payload: Any, path: str = "issues") -> list[ValidationIssue]:
    """Validate a list of issue dicts supplied by an external analyzer."""
    if not isinstance(payload, list):
        raise StructuralError("expected an array", path)
    return [parse_issue(item, f"{path}[{i}]") for i, item in enumerate(payload)]
