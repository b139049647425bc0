"""Core data model dataclasses.

All other modules import from here. Keep this module free of side-effects so
it can be used in tests, the CLI and the web app alike.

Field names are snake_case in Python; ``to_dict`` emits the camelCase keys of
the exchanged JSON shapes. Inbound dicts are checked and built by
``roster_qa.core.instructions``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

#: One flat record. Values are str | int | float | bool | None or a list of those.
Row = dict[str, Any]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StructuralError(ValueError):
    """A collaborator-supplied value (instructions, rule, issue) has the wrong shape.

    Raised before any row is touched, so no partial application ever happens.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    CLIENTS = "clients"
    WORKERS = "workers"
    TASKS = "tasks"


#: Primary-key column per category.
ID_COLUMNS: dict[Category, str] = {
    Category.CLIENTS: "clientId",
    Category.WORKERS: "workerId",
    Category.TASKS: "taskId",
}


class FilterOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class ActionOperation(str, Enum):
    SET = "set"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    APPEND = "append"
    PREPEND = "prepend"


# ---------------------------------------------------------------------------
# Validation issue
# ---------------------------------------------------------------------------


@dataclass
class SuggestedCorrection:
    column: str
    new_value: Any
    reason: str = ""

    def to_dict(self) -> dict:
        return {"column": self.column, "newValue": self.new_value, "reason": self.reason}


@dataclass
class ValidationIssue:
    """A validation finding at a specific row/column of a dataset."""

    row: int  # 1-based row number; 0 for dataset-level findings
    column: str
    message: str
    severity: Severity
    suggested_correction: SuggestedCorrection | None = None
    is_ai_identified: bool | None = None
    is_anomaly: bool | None = None
    ai_confidence: float | None = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "row": self.row,
            "column": self.column,
            "message": self.message,
            "severity": self.severity.value,
        }
        if self.suggested_correction is not None:
            d["suggestedCorrection"] = self.suggested_correction.to_dict()
        if self.is_ai_identified is not None:
            d["isAIIdentified"] = self.is_ai_identified
        if self.is_anomaly is not None:
            d["isAnomaly"] = self.is_anomaly
        if self.ai_confidence is not None:
            d["aiConfidence"] = self.ai_confidence
        return d


@dataclass
class IssueSummary:
    errors: int = 0
    warnings: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {"errors": self.errors, "warnings": self.warnings, "total": self.total}


# ---------------------------------------------------------------------------
# Modification instructions
# ---------------------------------------------------------------------------


@dataclass
class DataFilter:
    column: str
    operator: str  # normally a FilterOperator value; anything else never matches
    value: Any

    def to_dict(self) -> dict:
        return {"column": self.column, "operator": str(self.operator), "value": self.value}


@dataclass
class DataModificationAction:
    column: str
    new_value: Any
    operation: str | None = None  # None means "set"

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"column": self.column, "newValue": self.new_value}
        if self.operation is not None:
            d["operation"] = str(self.operation)
        return d


@dataclass
class DataModificationInstructions:
    target_category: Category
    filters: list[DataFilter] = field(default_factory=list)
    actions: list[DataModificationAction] = field(default_factory=list)
    description: str = ""
    confirmation_required: bool = False

    def to_dict(self) -> dict:
        return {
            "targetCategory": self.target_category.value,
            "filters": [f.to_dict() for f in self.filters],
            "actions": [a.to_dict() for a in self.actions],
            "description": self.description,
            "confirmationRequired": self.confirmation_required,
        }


# ---------------------------------------------------------------------------
# Modification results
# ---------------------------------------------------------------------------


@dataclass
class SkippedAction:
    """An action left unapplied because of a type mismatch or unknown operation."""

    row: int | None  # 1-based row number when known
    column: str
    operation: str
    reason: str

    @property
    def message(self) -> str:
        where = f" (row {self.row})" if self.row is not None else ""
        return f"Skipped '{self.operation}' on column '{self.column}'{where}: {self.reason}"

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "column": self.column,
            "operation": self.operation,
            "reason": self.reason,
            "message": self.message,
        }


@dataclass
class CellChange:
    """One effective cell mutation made by an action."""

    row: int | None  # 1-based
    column: str
    old_value: Any
    new_value: Any
    operation: str

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "column": self.column,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "operation": self.operation,
        }


@dataclass
class ActionOutcome:
    """Result of applying an action list to a single row."""

    row: Row
    changed: bool
    skipped: list[SkippedAction] = field(default_factory=list)
    changes: list[CellChange] = field(default_factory=list)


@dataclass
class ModificationResult:
    """Result of running filters + actions over a whole dataset."""

    rows: list[Row]
    rows_affected: int
    skipped: list[SkippedAction] = field(default_factory=list)
    changes: list[CellChange] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "data": self.rows,
            "rowCountAffected": self.rows_affected,
            "skippedActions": [s.to_dict() for s in self.skipped],
            "changes": [c.to_dict() for c in self.changes],
            "errors": [i.to_dict() for i in self.issues],
        }


# ---------------------------------------------------------------------------
# Dataset metadata
# ---------------------------------------------------------------------------


@dataclass
class DatasetMeta:
    file_path: str
    encoding: str
    delimiter: str | None  # None for XLSX
    sheet_name: str | None  # None for CSV
    header_row: int  # 0-based index of the row used as column headers
    original_shape: tuple[int, int]  # (data_rows, cols) after header applied
    column_order: list[str]  # normalized (camelCase) names
    source_columns: list[str] = field(default_factory=list)  # headers as written in the file
    fingerprint: str = ""  # sha256 of raw file bytes[:65536]

    def to_dict(self) -> dict:
        # file_path is a local detail (often a temp file) and stays out
        return {
            "encoding": self.encoding,
            "delimiter": self.delimiter,
            "sheetName": self.sheet_name,
            "headerRow": self.header_row,
            "rowCount": self.original_shape[0],
            "columnCount": self.original_shape[1],
            "columns": list(self.column_order),
            "sourceColumns": list(self.source_columns),
            "fingerprint": self.fingerprint,
        }
